"""core

UI-independent domain model and rules for the weekly founder simulation.
"""

API_VERSION = "1.0"
