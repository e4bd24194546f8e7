"""HTTP surface package."""
