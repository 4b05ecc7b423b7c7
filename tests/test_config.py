import pytest

from cloud_queues import config
from cloud_queues.identity import UK_IDENTITY_ENDPOINT, US_IDENTITY_ENDPOINT
from cloud_queues.opencloud_driver import OpenCloudDriver

ENV_VARS = [
    'RACKSPACE_USERNAME', 'RACKSPACE_API_KEY', 'RACKSPACE_IDENTITY_URL', 'RACKSPACE_REGION',
    'RACKSPACE_URL_TYPE', 'QUEUES_SERVICE_NAME', 'QUEUES_ENDPOINT', 'QUEUES_AUTH_TOKEN',
    'QUEUES_CLIENT_ID', 'QUEUES_PREFETCH', 'QUEUES_TTL', 'QUEUES_GRACE', 'QUEUES_NAMES',
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    config.reset()
    yield
    config.reset()


def test_default_settings():
    settings = config.get_settings()

    assert settings['region'] == 'ORD'
    assert settings['url_type'] == 'publicURL'
    assert settings['service_name'] == 'cloudQueues'
    assert settings['prefetch'] == 2
    assert settings['ttl'] == 43200
    assert settings['grace'] == 60
    assert settings['queues'] == []


def test_settings_from_environment(monkeypatch):
    monkeypatch.setenv('QUEUES_PREFETCH', '10')
    monkeypatch.setenv('QUEUES_TTL', '300')
    monkeypatch.setenv('QUEUES_NAMES', 'jobs, emails,,')

    settings = config.get_settings()

    assert settings['prefetch'] == 10
    assert settings['ttl'] == 300
    assert settings['queues'] == ['jobs', 'emails']


def test_build_service_with_explicit_endpoint(monkeypatch):
    monkeypatch.setenv('QUEUES_ENDPOINT', 'http://localhost:8888/v1/')
    monkeypatch.setenv('QUEUES_AUTH_TOKEN', 'secret')
    monkeypatch.setenv('QUEUES_CLIENT_ID', 'my-client')

    service = config.build_service(config.get_settings())

    assert service.url == 'http://localhost:8888/v1'
    assert service.token == 'secret'
    assert service.client_id == 'my-client'


def test_identity_url_aliases(monkeypatch):
    assert config.get_settings()['identity_url'] == US_IDENTITY_ENDPOINT

    monkeypatch.setenv('RACKSPACE_IDENTITY_URL', 'UK')
    assert config.get_settings()['identity_url'] == UK_IDENTITY_ENDPOINT

    monkeypatch.setenv('RACKSPACE_IDENTITY_URL', 'https://keystone.example.com/v2.0/')
    assert config.get_settings()['identity_url'] == 'https://keystone.example.com/v2.0/'


def test_build_service_requires_credentials():
    with pytest.raises(ValueError):
        config.build_service(config.get_settings())


def test_get_driver_is_a_singleton(monkeypatch):
    monkeypatch.setenv('QUEUES_ENDPOINT', 'http://localhost:8888/v1')
    monkeypatch.setenv('QUEUES_PREFETCH', '4')
    monkeypatch.setenv('QUEUES_NAMES', 'jobs')

    driver = config.get_driver()

    assert isinstance(driver, OpenCloudDriver)
    assert driver is config.get_driver()
    assert driver.service is config.get_queue_service()
    assert driver.prefetch == 4
    assert list(driver.queues) == ['jobs']


def test_load_env_file(tmp_path, monkeypatch):
    env_file = tmp_path / '.env'
    env_file.write_text('RACKSPACE_REGION=LON\nQUEUES_PREFETCH=8\n')
    # Registered so the values loaded below are removed after the test
    monkeypatch.setenv('RACKSPACE_REGION', 'unset')
    monkeypatch.delenv('RACKSPACE_REGION')
    monkeypatch.setenv('QUEUES_PREFETCH', 'unset')
    monkeypatch.delenv('QUEUES_PREFETCH')

    assert config.load_env(str(env_file)) is True

    settings = config.get_settings()
    assert settings['region'] == 'LON'
    assert settings['prefetch'] == 8
