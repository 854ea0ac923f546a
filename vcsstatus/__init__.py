"""vcsstatus - repository status for shell prompts and status lines."""

__version__ = "0.1.0"
