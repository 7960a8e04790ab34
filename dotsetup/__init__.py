"""Idempotent, backup-first deployment of dotfiles packages with GNU Stow."""

__version__ = "1.0.0"
