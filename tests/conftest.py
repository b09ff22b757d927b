"""
Pytest configuration and shared fixtures
"""

import pytest
from eth_account import Account
from fastapi.testclient import TestClient

from src.config import FacilitatorConfig
from src.gateway.server import create_app
from src.settlement import build_facilitator
from tests.factories import BUYER_KEY, SKILL_REGISTRY, PaymentRequirementsFactory, funded_chain


@pytest.fixture
def test_buyer_account():
    """Buyer account that signs payment proofs"""
    return Account.from_key(BUYER_KEY)


@pytest.fixture
def other_account():
    """An unrelated account, used for forged signatures"""
    return Account.create()


@pytest.fixture
def requirements():
    return PaymentRequirementsFactory()


@pytest.fixture
def chain():
    """Recording fake chain client with a funded buyer and a staked seller"""
    return funded_chain()


@pytest.fixture
def config() -> FacilitatorConfig:
    """Mainnet config with default admission thresholds, isolated from any .env file"""
    return FacilitatorConfig(_env_file=None, skill_registry_address=SKILL_REGISTRY)


@pytest.fixture
def facilitator(config, chain):
    return build_facilitator(config, chain=chain)


@pytest.fixture
def client(config, facilitator) -> TestClient:
    """FastAPI test client around the injected facilitator"""
    return TestClient(create_app(facilitator=facilitator, config=config))
