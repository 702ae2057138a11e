"""Shared fixtures: simulated clusters and a fake Jolokia endpoint."""

import time

import pytest
import requests

from logadmin.admin.memory import InMemoryAdmin


class FakeResponse:
    """Minimal stand-in for requests.Response."""

    def __init__(self, body, status_code=200):
        self._body = body
        self.status_code = status_code

    def json(self):
        if isinstance(self._body, Exception):
            raise self._body
        return self._body

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")


class FakeJolokia:
    """
    In-memory Jolokia agent.

    Beans are stored as object name -> attributes. Sessions created through
    ``session_factory`` read from the same store, so tests can change a
    counter between two reads.
    """

    def __init__(self):
        self.beans = {}
        self.requests = []
        self.sessions = []
        self.error = None
        self.http_status = 200

    def add(self, object_name, **attributes):
        self.beans[object_name] = dict(attributes)

    def bump(self, object_name, attribute="Count", delta=1):
        self.beans[object_name][attribute] += delta

    def session_factory(self):
        session = FakeSession(self)
        self.sessions.append(session)
        return session

    def read(self, mbean):
        domain, _, rest = mbean.partition(":")
        wanted = {}
        open_ended = False
        for pair in rest.split(","):
            if pair == "*":
                open_ended = True
                continue
            key, _, value = pair.partition("=")
            wanted[key] = value
        is_pattern = open_ended or any(v == "*" for v in wanted.values())

        matched = {}
        for name, attributes in self.beans.items():
            bean_domain, _, bean_rest = name.partition(":")
            props = dict(p.split("=", 1) for p in bean_rest.split(","))
            if bean_domain != domain:
                continue
            if any(k not in props or (v != "*" and props[k] != v) for k, v in wanted.items()):
                continue
            if not open_ended and set(props) != set(wanted):
                continue
            matched[name] = dict(attributes)

        now = int(time.time())
        if not matched:
            return {
                "status": 404,
                "error_type": "javax.management.InstanceNotFoundException",
                "error": f"{mbean}",
                "timestamp": now,
            }
        if is_pattern:
            return {"status": 200, "value": matched, "timestamp": now}
        return {"status": 200, "value": next(iter(matched.values())), "timestamp": now}


class FakeSession:
    """Stand-in for requests.Session bound to a FakeJolokia."""

    def __init__(self, agent):
        self.agent = agent
        self.closed = False

    def post(self, url, json=None, timeout=None):
        self.agent.requests.append((url, json, timeout))
        if self.agent.error is not None:
            raise self.agent.error
        if self.agent.http_status != 200:
            return FakeResponse({}, status_code=self.agent.http_status)
        return FakeResponse(self.agent.read(json["mbean"]))

    def close(self):
        self.closed = True


@pytest.fixture
def jolokia():
    """Create an empty fake Jolokia agent."""
    return FakeJolokia()


@pytest.fixture
def jolokia_factory():
    """Create fake Jolokia agents on demand, one per broker."""
    return FakeJolokia


@pytest.fixture
def admin():
    """Create a three-broker simulated cluster with two folders per broker."""
    cluster = InMemoryAdmin.of(broker_count=3, folders_per_broker=2, convergence_polls=2)
    yield cluster
    cluster.close()
