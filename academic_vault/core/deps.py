"""
Request-scoped access to the collaborators built in create_app().

The data gateway and AI gateway are chosen once per application instance and
kept on app.state, so tests can build an app around in-memory fakes.
"""
from fastapi import Request

from academic_vault.services.ai_gateway import AIGateway
from academic_vault.services.data_gateway import VaultDataGateway


def get_gateway(request: Request) -> VaultDataGateway:
    return request.app.state.gateway


def get_ai_gateway(request: Request) -> AIGateway:
    return request.app.state.ai_gateway
