import logging
from ipaddress import IPv4Address

import pytest

from conftest import FIXED_NOW, FakeIPProvider, FakeMailSender, render_config
from ipmonitor.core.errors import ConfigError, DetectionError, LockError, NotificationError, StateWriteError
from ipmonitor.core.models import CycleResult, MonitorConfig, Transition
from ipmonitor.core.runtime.state import StateManager, classify_transition
from ipmonitor.providers.config_store import DotenvConfigStore
from ipmonitor.providers.mail_sender import MsmtpMailSender


def make_manager(store, ip=None, error=None, sender=None):
    provider = FakeIPProvider(ip=ip, error=error)
    sender = sender or FakeMailSender()
    manager = StateManager(store, provider, sender, host_label="gw.example.org", clock=lambda: FIXED_NOW)
    return manager, provider, sender


def test_classify_transition():
    ip = IPv4Address("192.0.2.1")

    assert classify_transition(None, ip) is Transition.FIRST_RUN
    assert classify_transition(ip, ip) is Transition.UNCHANGED
    assert classify_transition(IPv4Address("192.0.2.2"), ip) is Transition.CHANGED


def test_first_run_stores_current_ip_without_notification(store, settings):
    manager, provider, sender = make_manager(store, ip="203.0.113.7")

    result = manager.run_cycle(settings)

    assert result is CycleResult.INITIALIZED
    assert store.get("CURRENT_IP") == "203.0.113.7"
    assert store.get("OLD_IP") == ""
    assert sender.messages == []
    assert provider.calls == [("https://ip.example.org/plain?format=text&v=4", 5.0)]


def test_unchanged_ip_is_idempotent(write_config, settings):
    path = write_config(current_ip="203.0.113.7", old_ip="198.51.100.1")
    store = DotenvConfigStore(path)
    before = path.read_bytes()
    manager, _, sender = make_manager(store, ip="203.0.113.7")

    results = [manager.run_cycle(settings) for _ in range(3)]

    assert results == [CycleResult.NO_CHANGE] * 3
    assert path.read_bytes() == before
    assert sender.messages == []


def test_second_immediate_cycle_after_change_is_a_no_op(write_config, settings):
    store = DotenvConfigStore(write_config(current_ip="203.0.113.7"))
    manager, _, sender = make_manager(store, ip="203.0.113.8")

    assert manager.run_cycle(settings) is CycleResult.CHANGED_NOTIFIED
    assert manager.run_cycle(settings) is CycleResult.NO_CHANGE
    assert len(sender.messages) == 1


def test_change_updates_state_and_notifies_once(write_config, settings):
    path = write_config(current_ip="203.0.113.7")
    store = DotenvConfigStore(path)
    manager, _, sender = make_manager(store, ip="203.0.113.8")

    result = manager.run_cycle(settings)

    assert result is CycleResult.CHANGED_NOTIFIED
    assert store.get("OLD_IP") == "203.0.113.7"
    assert store.get("CURRENT_IP") == "203.0.113.8"
    assert path.read_text(encoding="utf-8") == render_config(current_ip="203.0.113.8", old_ip="203.0.113.7")

    assert len(sender.messages) == 1
    message = sender.messages[0]
    assert message.content.subject == "IP cambiada en gw.example.org"
    assert "203.0.113.7" in message.content.body
    assert "203.0.113.8" in message.content.body
    assert message.to_address == "ops@example.org"


def test_state_is_written_before_notification(write_config, settings):
    store = DotenvConfigStore(write_config(current_ip="203.0.113.7"))
    seen = {}

    class InspectingSender(FakeMailSender):
        def send(self, message, credentials):
            seen["old"] = store.get("OLD_IP")
            seen["current"] = store.get("CURRENT_IP")
            return super().send(message, credentials)

    manager, _, _ = make_manager(store, ip="203.0.113.8", sender=InspectingSender())

    manager.run_cycle(settings)

    assert seen == {"old": "203.0.113.7", "current": "203.0.113.8"}


def test_detection_failure_leaves_state_untouched(write_config, settings, caplog):
    caplog.set_level(logging.INFO, logger="ipmonitor")
    path = write_config(current_ip="203.0.113.7")
    before = path.read_bytes()
    manager, _, sender = make_manager(DotenvConfigStore(path), error=DetectionError("timeout"))

    result = manager.run_cycle(settings)

    assert result is CycleResult.DETECTION_FAILED
    assert not result.is_success
    assert path.read_bytes() == before
    assert sender.messages == []
    assert any(record.levelno == logging.ERROR for record in caplog.records)


def test_notification_failure_keeps_updated_state(write_config, settings, caplog):
    caplog.set_level(logging.INFO, logger="ipmonitor")
    store = DotenvConfigStore(write_config(current_ip="203.0.113.7"))
    sender = FakeMailSender(ok=False, diagnostic="535 authentication failed")
    manager, _, _ = make_manager(store, ip="203.0.113.8", sender=sender)

    result = manager.run_cycle(settings)

    assert result is CycleResult.CHANGED_NOTIFICATION_FAILED
    assert not result.is_success
    assert store.get("OLD_IP") == "203.0.113.7"
    assert store.get("CURRENT_IP") == "203.0.113.8"
    assert "535 authentication failed" in caplog.text


def test_sender_exception_is_a_notification_failure(write_config, settings):
    store = DotenvConfigStore(write_config(current_ip="203.0.113.7"))

    class RaisingSender:
        def send(self, message, credentials):
            raise NotificationError("smtp caído")

    manager, _, _ = make_manager(store, ip="203.0.113.8", sender=RaisingSender())

    assert manager.run_cycle(settings) is CycleResult.CHANGED_NOTIFICATION_FAILED
    assert store.get("CURRENT_IP") == "203.0.113.8"


def test_secret_never_reaches_logs(write_config, settings, caplog):
    caplog.set_level(logging.DEBUG, logger="ipmonitor")
    store = DotenvConfigStore(write_config(current_ip="203.0.113.7"))
    manager, _, _ = make_manager(store, ip="203.0.113.8", sender=FakeMailSender(ok=False))

    manager.run_cycle(settings)

    assert "s3cr3t" not in caplog.text


def test_missing_state_field_is_a_state_write_failure(write_config, settings):
    path = write_config(content='EMAIL_TO="ops@example.org"\n')
    manager, _, sender = make_manager(DotenvConfigStore(path), ip="203.0.113.7")

    with pytest.raises(StateWriteError):
        manager.run_cycle(settings)

    assert sender.messages == []


def test_corrupt_stored_ip_is_reported(write_config, settings):
    store = DotenvConfigStore(write_config(current_ip="not-an-ip"))
    manager, provider, _ = make_manager(store, ip="203.0.113.7")

    with pytest.raises(ConfigError):
        manager.run_cycle(settings)

    assert provider.calls == []


def test_overlapping_cycle_reports_contention_without_side_effects(write_config, settings):
    path = write_config(current_ip="203.0.113.7")
    second_provider = FakeIPProvider(ip="198.51.100.1")
    second_sender = FakeMailSender()
    outcome = {}

    class OverlappingProvider:
        def fetch(self, endpoint, timeout):
            second = StateManager(DotenvConfigStore(path), second_provider, second_sender, host_label="gw")
            try:
                second.run_cycle(settings)
            except LockError as e:
                outcome["error"] = e
            return IPv4Address("203.0.113.8")

    first = StateManager(DotenvConfigStore(path), OverlappingProvider(), FakeMailSender(), host_label="gw")

    assert first.run_cycle(settings) is CycleResult.CHANGED_NOTIFIED
    assert isinstance(outcome.get("error"), LockError)
    assert second_provider.calls == []
    assert second_sender.messages == []
    store = DotenvConfigStore(path)
    assert store.get("OLD_IP") == "203.0.113.7"
    assert store.get("CURRENT_IP") == "203.0.113.8"


def test_settings_fixture_uses_document_values(settings):
    assert isinstance(settings, MonitorConfig)
    assert settings.curl_timeout == 5.0
    assert settings.smtp_port == 587


def test_mail_setup_failure_ends_cycle_as_notification_failure(write_config, settings, tmp_path, monkeypatch, caplog):
    caplog.set_level(logging.INFO, logger="ipmonitor")
    monkeypatch.setattr("ipmonitor.providers.mail_sender.shutil.which", lambda name: f"/usr/bin/{name}")
    store = DotenvConfigStore(write_config(current_ip="203.0.113.7"))
    sender = MsmtpMailSender(tmp_dir=tmp_path / "no-existe")
    manager, _, _ = make_manager(store, ip="203.0.113.8", sender=sender)

    result = manager.run_cycle(settings)

    assert result is CycleResult.CHANGED_NOTIFICATION_FAILED
    assert store.get("CURRENT_IP") == "203.0.113.8"
    assert "No se pudo preparar la configuración de msmtp" in caplog.text
