"""Tests for configuration selection."""
import pytest

from config import DevelopmentConfig, ProductionConfig, TestingConfig, get_config
from geoattend import create_app

@pytest.mark.parametrize('name,expected', [
    ('development', DevelopmentConfig),
    ('production', ProductionConfig),
    ('testing', TestingConfig),
])
def test_get_config_by_name(name, expected):
    assert get_config(name) is expected

def test_get_config_reads_flask_env(monkeypatch):
    monkeypatch.setenv('FLASK_ENV', 'testing')
    assert get_config() is TestingConfig

    monkeypatch.delenv('FLASK_ENV')
    assert get_config() is DevelopmentConfig

@pytest.mark.parametrize('name', ['default', 'prod', 'Testing', ''])
def test_unknown_config_is_rejected(name):
    with pytest.raises(ValueError):
        get_config(name)

def test_create_app_rejects_unknown_environment(monkeypatch):
    monkeypatch.setenv('FLASK_ENV', 'staging')

    with pytest.raises(ValueError):
        create_app()
