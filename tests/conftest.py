import asyncio
import copy

import pytest

from kubesync.core.models import ObjectIdentity
from kubesync.gateway.memory import InMemoryGateway
from kubesync.sync.controller import ResourceSyncController

DEPLOYMENT = {
    "apiVersion": "apps/v1",
    "kind": "Deployment",
    "metadata": {
        "name": "web",
        "namespace": "default",
        "labels": {"app": "web"},
        "managedFields": [{"manager": "kubectl-client-side-apply", "operation": "Update"}],
    },
    "spec": {
        "replicas": 2,
        "selector": {"matchLabels": {"app": "web"}},
        "template": {
            "metadata": {"labels": {"app": "web"}},
            "spec": {
                "containers": [
                    {"name": "web", "image": "nginx:1.25", "ports": [{"containerPort": 80}]},
                ]
            },
        },
    },
}

DEPLOYMENT_CATALOG = {
    "Deployment": {
        "required": ["spec"],
        "fields": {
            "spec": {
                "type": "object",
                "required": ["selector", "template"],
                "fields": {
                    "replicas": {"type": "integer", "minimum": 0},
                    "selector": {"type": "object"},
                    "template": {
                        "type": "object",
                        "fields": {
                            "metadata": {"type": "object"},
                            "spec": {
                                "type": "object",
                                "fields": {
                                    "containers": {
                                        "type": "array",
                                        "items": {
                                            "type": "object",
                                            "required": ["name", "image"],
                                            "fields": {
                                                "name": {"type": "string"},
                                                "image": {"type": "string"},
                                                "ports": {"type": "array"},
                                            },
                                        },
                                    }
                                },
                            },
                        },
                    },
                },
            }
        },
    }
}


@pytest.fixture
def deployment():
    return copy.deepcopy(DEPLOYMENT)


@pytest.fixture
def identity():
    return ObjectIdentity(namespace="default", kind="Deployment", name="web")


@pytest.fixture
def gateway(deployment):
    gw = InMemoryGateway()
    gw.seed(deployment)
    return gw


@pytest.fixture
def controller(gateway, identity):
    return ResourceSyncController(identity, gateway)


@pytest.fixture
def server_copy(gateway, identity):
    """Returns a fresh copy of what the fake API server currently stores."""
    def _copy():
        return copy.deepcopy(gateway.objects[identity])
    return _copy


@pytest.fixture
def settle():
    """Lets background watch tasks drain their queues."""
    async def _settle(rounds: int = 10):
        for _ in range(rounds):
            await asyncio.sleep(0)
    return _settle
