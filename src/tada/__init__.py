"""tada: rank, search and reschedule a todo.txt task list."""

__version__ = "0.1.0"
