from fastapi import Depends, Request

from .container import ApplicationContainer


def get_container(request: Request) -> ApplicationContainer:
    container = getattr(request.app.state, "container", None)
    if not container:
        raise RuntimeError("Application container not initialised.")
    return container


def get_settings(container: ApplicationContainer = Depends(get_container)):
    return container.settings


def get_auth_service(container: ApplicationContainer = Depends(get_container)):
    return container.auth_service


def get_token_service(container: ApplicationContainer = Depends(get_container)):
    return container.token_service


def get_approval_service(container: ApplicationContainer = Depends(get_container)):
    return container.approval_service


def get_contact_service(container: ApplicationContainer = Depends(get_container)):
    return container.contact_service


def get_records_service(container: ApplicationContainer = Depends(get_container)):
    return container.records_service


def get_video_library(container: ApplicationContainer = Depends(get_container)):
    return container.video_library
