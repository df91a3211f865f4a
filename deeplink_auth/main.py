"""Main application entry point for the FastAPI application.

This module serves as the central entry point for the application.
It initializes the application and creates the FastAPI instance using
the application factory pattern. Deployments that own a credential store
build their own app with ``create_application(credential_store=...)``.
"""

from deeplink_auth.core.application import create_application
from deeplink_auth.core.initialization import initialize_application

initialize_application()

app = create_application()
