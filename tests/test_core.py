import logging

import pytest
import yaml

import pgprovision.services.readiness as readiness_module
from pgprovision.core import Provisioner
from pgprovision.errors import CommandError, OrchestrationError, RuntimeEnvironmentError
from pgprovision.models import ProvisioningConfig
from pgprovision.services.ports import PortResolver


class FakeRuntime:
    """In-memory stand-in for the docker CLI adapter."""

    def __init__(self, available=True, fail_bring_up=False, healthy=True):
        self.available = available
        self.fail_bring_up = fail_bring_up
        self.healthy = healthy
        self.calls = []
        self.containers = set()
        self.volumes = set()
        self.networks = set()
        self.published_ports = []
        self.manifest_existed = None

    def ensure_available(self):
        self.calls.append("ensure_available")
        if not self.available:
            raise RuntimeEnvironmentError("Docker is not installed.")

    def remove_container(self, name):
        self.calls.append("remove_container")
        self.containers.discard(name)

    def remove_volume(self, name):
        self.calls.append("remove_volume")
        self.volumes.discard(name)

    def prune_volumes(self):
        self.calls.append("prune_volumes")

    def remove_network(self, name):
        self.calls.append("remove_network")
        self.networks.discard(name)

    def bring_up(self, manifest_path):
        self.calls.append("bring_up")
        with open(manifest_path, encoding="utf-8") as file_obj:
            manifest = yaml.safe_load(file_obj)
        self.manifest_existed = True
        if self.fail_bring_up:
            # Partially applied: the network exists before compose gives up.
            self.networks.update(manifest["networks"])
            raise OrchestrationError("Docker Compose could not start the services")
        for service in manifest["services"].values():
            self.containers.add(service["container_name"])
            self.published_ports.extend(service["ports"])
        self.volumes.update(manifest["volumes"])
        self.networks.update(manifest["networks"])

    def probe_health(self, container, user):
        self.calls.append("probe_health")
        return self.healthy and container in self.containers


class FakeResponse:
    def close(self):
        return None


class FakeRequestsModule:
    class RequestException(Exception):
        pass

    def __init__(self, reachable=True):
        self.reachable = reachable
        self.urls = []

    def get(self, url, **_kwargs):
        self.urls.append(url)
        if not self.reachable:
            raise self.RequestException("connection refused")
        return FakeResponse()


class FixedPortsResolver(PortResolver):
    def __init__(self, busy=()):
        super().__init__(logger=logging.getLogger("pgprovision"))
        self.busy = set(busy)

    def is_port_in_use(self, port):
        return port in self.busy


@pytest.fixture(autouse=True)
def no_sleep(monkeypatch):
    monkeypatch.setattr(readiness_module.time, "sleep", lambda *_args, **_kwargs: None)


def build_provisioner(tmp_path, config=None, runtime=None, busy=(), reachable=True):
    runtime = runtime or FakeRuntime()
    fake_requests = FakeRequestsModule(reachable=reachable)
    provisioner = Provisioner(
        config=config or ProvisioningConfig(),
        runtime=runtime,
        port_resolver=FixedPortsResolver(busy),
        requests_module=fake_requests,
        directory=str(tmp_path),
        readiness_attempts=3,
    )
    return provisioner, runtime, fake_requests


def test_run_with_defaults_succeeds_and_removes_generated_files(tmp_path):
    provisioner, runtime, fake_requests = build_provisioner(tmp_path)

    exit_code = provisioner.run()

    assert exit_code == 0
    assert runtime.published_ports == ["5432:5432", "5050:80"]
    assert fake_requests.urls == ["http://localhost:5050"]
    assert runtime.containers == {"postgres_db", "pgadmin4"}
    assert runtime.manifest_existed is True
    assert list(tmp_path.iterdir()) == []


def test_run_reassigns_busy_database_port(tmp_path, caplog):
    provisioner, runtime, _ = build_provisioner(tmp_path, busy={5432})

    with caplog.at_level(logging.WARNING, logger="pgprovision"):
        exit_code = provisioner.run()

    assert exit_code == 0
    assert "5433:5432" in runtime.published_ports
    assert "Port 5432 is in use. Using port 5433 for PostgreSQL instead" in caplog.text


def test_weak_password_exits_before_touching_runtime(tmp_path):
    config = ProvisioningConfig(postgres_password="short")
    provisioner, runtime, _ = build_provisioner(tmp_path, config=config)

    exit_code = provisioner.run()

    assert exit_code == 1
    assert runtime.calls == ["ensure_available"]
    assert list(tmp_path.iterdir()) == []


def test_missing_runtime_fails_before_validation(tmp_path):
    config = ProvisioningConfig(postgres_password="short")
    provisioner, runtime, _ = build_provisioner(tmp_path, config=config, runtime=FakeRuntime(available=False))

    assert provisioner.run() == 1
    assert runtime.calls == ["ensure_available"]


def test_console_timeout_rolls_back_everything(tmp_path):
    provisioner, runtime, fake_requests = build_provisioner(tmp_path, reachable=False)

    exit_code = provisioner.run()

    assert exit_code == 1
    assert len(fake_requests.urls) == 3
    assert runtime.containers == set()
    assert runtime.volumes == set()
    assert runtime.networks == set()
    assert list(tmp_path.iterdir()) == []


def test_database_timeout_rolls_back_everything(tmp_path):
    provisioner, runtime, fake_requests = build_provisioner(tmp_path, runtime=FakeRuntime(healthy=False))

    assert provisioner.run() == 1
    assert fake_requests.urls == []
    assert runtime.containers == set()
    assert list(tmp_path.iterdir()) == []


def test_rejected_bring_up_rolls_back(tmp_path, capsys):
    provisioner, runtime, _ = build_provisioner(tmp_path, runtime=FakeRuntime(fail_bring_up=True))

    assert provisioner.run() == 1
    assert runtime.networks == set()
    assert list(tmp_path.iterdir()) == []
    assert "Docker Compose could not start the services" in capsys.readouterr().err


def test_no_cleanup_skips_pre_run_cleanup(tmp_path):
    config = ProvisioningConfig(skip_cleanup=True)
    provisioner, runtime, _ = build_provisioner(tmp_path, config=config)

    assert provisioner.run() == 0
    assert "remove_container" not in runtime.calls
    assert runtime.calls.index("bring_up") == 1


def test_rollback_runs_even_with_no_cleanup(tmp_path):
    config = ProvisioningConfig(skip_cleanup=True)
    provisioner, runtime, _ = build_provisioner(tmp_path, config=config, reachable=False)

    assert provisioner.run() == 1
    assert runtime.containers == set()
    assert "remove_container" in runtime.calls


def test_rollback_survives_failing_cleanup_steps(tmp_path):
    class StuckVolumeRuntime(FakeRuntime):
        def remove_volume(self, name):
            self.calls.append("remove_volume")
            raise CommandError("volume is in use")

    provisioner, runtime, _ = build_provisioner(tmp_path, runtime=StuckVolumeRuntime(), reachable=False)

    assert provisioner.run() == 1
    assert runtime.containers == set()
    assert provisioner.cleanup_warnings
    assert list(tmp_path.iterdir()) == []


def test_success_prints_connection_summary(tmp_path, capsys):
    config = ProvisioningConfig(postgres_user="app", pgadmin_email="dba@example.com")
    provisioner, _, _ = build_provisioner(tmp_path, config=config)

    assert provisioner.run() == 0

    output = capsys.readouterr().out
    assert "localhost:5432" in output
    assert "http://localhost:5050" in output
    assert "Username: app" in output
    assert "Email: dba@example.com" in output
