"""skill-linker - symlink skill directories into an AI agent's skills folder."""

__version__ = "0.1.0"
