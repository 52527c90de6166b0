"""
tasknc - ncurses-style terminal interface for taskwarrior.

Architecture:
- records.py / taskwarrior.py: task data and the `task` binary
- formats.py: format string compiler and evaluator
- colors.py: color rules, predicates and pair allocation
- sorting.py: sort mode comparison
- variables.py / commands.py: the user command language
- session.py: runtime state tying the pieces together
- views/: Textual screen/widget components
- app.py: Main application entry point
"""

PROGRAM_NAME = "tasknc"
PROGRAM_AUTHOR = "mjheagle"

__version__ = "0.8.0"
