from fastapi import Request

from complyai.features.indexing.services.components import Components


def get_components(request: Request) -> Components:
    return request.app.state.components
