"""Order Desk - order lifecycle and profitability engine."""

__version__ = "1.0.0"
