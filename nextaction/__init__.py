"""nextaction - next actions from TaskPaper-style project files."""

__version__ = "0.1.0"
