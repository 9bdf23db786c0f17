"""Roundsman - provision remote hosts with Ruby, Chef and cookbooks over SSH."""

__version__ = "0.1.0"
