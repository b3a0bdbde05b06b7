from cms_gateway.main import app  # noqa: F401

# uvicorn main:app
# uvicorn main:app --reload
