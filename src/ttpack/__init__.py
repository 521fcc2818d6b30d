"""ttpack - declarative plugin sync for Neovim's pack directory."""

__version__ = "0.1.0"
