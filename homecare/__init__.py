"""Home-care booking price engine and geo-proximity checks."""
