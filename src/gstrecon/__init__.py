"""GST reconciliation: match a GSTR-2B statement against a purchase register."""

__version__ = "0.1.0"
