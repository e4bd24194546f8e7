"""Identity, Firebase bootstrap and message texts."""
