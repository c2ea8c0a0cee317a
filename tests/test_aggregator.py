import pytest

from rancher_exporter.aggregator import aggregate
from rancher_exporter.walker import Service


def _services(env, *states):
    return [
        Service(name=f"svc{idx}", state=state, environment_id="1e1", environment=env)
        for idx, state in enumerate(states)
    ]


@pytest.mark.parametrize(
    ("states", "expected"),
    [
        (("active", "active"), "active"),
        (("active", "stopped"), "stopped"),
        (("stopped", "active"), "stopped"),
        (("stopped", "stopping"), "stopping"),
        (("upgrading",), "upgrading"),
    ],
)
def test_non_active_state_takes_precedence(states, expected):
    assert aggregate(_services("Production", *states)) == {"Production": expected}


def test_no_services_means_no_environment():
    assert aggregate([]) == {}


def test_environments_are_aggregated_independently():
    services = _services("A", "active", "active") + _services("B", "active", "degraded", "active")

    assert aggregate(services) == {"A": "active", "B": "degraded"}


def test_services_without_environment_name_are_skipped():
    services = [
        Service(name="ghost", state="stopped", environment_id="1e9", environment=None),
        Service(name="web", state="active", environment_id="1e1", environment="A"),
    ]

    assert aggregate(services) == {"A": "active"}
