"""Entry point for the billing desk Textual app."""

from __future__ import annotations

from billdesk.billing_app import BillingApp


def main() -> None:
    BillingApp().run()


if __name__ == "__main__":
    main()
