# Subpackages are imported directly, e.g. `from revlens.core.db import DatabaseManager`,
# so importing the API layer does not pull in the LLM stack.
