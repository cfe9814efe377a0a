"""Restaurant billing desk: reconcile ready orders with payments."""
