from fastapi import Request

from doc_vault.container import ServiceContainer


def get_container(request: Request) -> ServiceContainer:
    """Services built in the app lifespan, shared by every request."""
    return request.app.state.container
