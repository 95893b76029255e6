# Entry point for `uvicorn main:app --reload`
from inventory_api.main import app  # noqa: F401
