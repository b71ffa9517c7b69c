"""FinTrek: gamified financial-literacy learning API."""
