from __future__ import annotations

import logging

import pytest

from couchbase_binding.client import CouchbaseClient
from couchbase_binding.connections import ConnectionManager
from couchbase_binding.durability import PersistenceLevel, ReplicationLevel
from couchbase_binding.errors import ConnectionFault, DoubleReleaseError, ErrorKind
from couchbase_binding.results import Status


def test_crud_walkthrough(client):
    assert client.insert("usertable", "user1", {"name": b"ann"}).status is Status.OK

    got = client.read("usertable", "user1")
    assert got.ok
    assert got.record == {"name": b"ann"}

    assert client.update("usertable", "user1", {"name": b"bea"}).status is Status.OK
    assert client.read("usertable", "user1").record == {"name": b"bea"}

    assert client.delete("usertable", "user1").status is Status.OK
    gone = client.read("usertable", "user1")
    assert gone.status is Status.NOT_FOUND
    assert gone.kind is ErrorKind.NOT_FOUND
    assert gone.record is None


def test_documents_are_stored_under_table_dash_key(client, deployment):
    client.insert("usertable", "user7", {"field0": b"v"})
    doc = deployment.get("default", "usertable-user7")
    assert doc is not None
    assert doc.content == {"field0": "v"}


def test_read_projection(client):
    client.insert("usertable", "u", {"a": b"1", "b": b"2", "c": b"3"})

    assert client.read("usertable", "u", {"a", "c"}).record == {"a": b"1", "c": b"3"}

    missing = client.read("usertable", "u", ["a", "never"])
    assert missing.status is Status.ERROR
    assert missing.kind is ErrorKind.FIELD_NOT_FOUND


def test_read_missing_key_logs_key(client, caplog):
    with caplog.at_level(logging.WARNING, logger="couchbase_binding.client"):
        result = client.read("usertable", "ghost")
    assert result.status is Status.NOT_FOUND
    assert "ghost" in caplog.text


def test_update_replaces_whole_document(client):
    client.insert("usertable", "u", {"a": b"1", "b": b"2"})
    client.update("usertable", "u", {"b": b"3"})
    assert client.read("usertable", "u").record == {"b": b"3"}


def test_update_field(client):
    client.insert("usertable", "u", {"a": b"1"})
    assert client.update_field("usertable", "u", "a", b"2").ok
    assert client.read("usertable", "u").record == {"a": b"2"}


def test_update_missing_key_is_not_found(client):
    result = client.update("usertable", "nobody", {"a": b"1"})
    assert result.status is Status.NOT_FOUND
    assert client.read("usertable", "nobody").status is Status.NOT_FOUND


def test_insert_existing_key_is_already_exists(client):
    client.insert("usertable", "u", {"a": b"1"})
    result = client.insert("usertable", "u", {"a": b"2"})
    assert result.status is Status.ERROR
    assert result.kind is ErrorKind.ALREADY_EXISTS
    assert client.read("usertable", "u").record == {"a": b"1"}


def test_delete_missing_key_is_not_found(client):
    result = client.delete("usertable", "nobody")
    assert result.status is Status.NOT_FOUND


def test_encoding_failure_is_reported_not_raised(client, caplog):
    with caplog.at_level(logging.ERROR, logger="couchbase_binding.client"):
        result = client.insert("usertable", "bad", {"a": b"\xff"})
    assert result.status is Status.ERROR
    assert result.kind is ErrorKind.ENCODING
    assert "bad" in caplog.text
    assert client.read("usertable", "bad").status is Status.NOT_FOUND


def test_tables_do_not_collide(client):
    client.insert("t1", "k", {"v": b"one"})
    client.insert("t2", "k", {"v": b"two"})
    assert client.read("t1", "k").record == {"v": b"one"}
    assert client.read("t2", "k").record == {"v": b"two"}


def test_scan_is_not_implemented(client):
    for result in (
        client.scan("usertable", "user1", 10),
        client.scan("usertable", "user1", 10, {"a"}),
        client.scan("", "", 0),
        client.scan_field("usertable", "user1", 5, "a"),
    ):
        assert result.status is Status.NOT_IMPLEMENTED
        assert result.kind is ErrorKind.NOT_IMPLEMENTED


def test_default_durability_is_master_none(client):
    assert client.durability.persist_to is PersistenceLevel.MASTER
    assert client.durability.replicate_to is ReplicationLevel.NONE


def test_unsatisfiable_durability_is_a_failure(client_factory):
    strict = client_factory(persistTo="4", replicateTo="3")
    strict.init()
    try:
        result = strict.insert("usertable", "u", {"a": b"1"})
        assert result.status is Status.ERROR
        assert result.kind is ErrorKind.DURABILITY_TIMEOUT
    finally:
        strict.cleanup()


def test_satisfiable_durability_succeeds(client_factory):
    c = client_factory(persistTo="2", replicateTo="1")
    c.init()
    try:
        assert c.insert("usertable", "u", {"a": b"1"}).ok
        assert c.update("usertable", "u", {"a": b"2"}).ok
        assert c.delete("usertable", "u").ok
    finally:
        c.cleanup()


def test_unexpected_fault_is_reported_as_error(client, monkeypatch, caplog):
    def boom(doc_id):
        raise RuntimeError("wire exploded")

    monkeypatch.setattr(client.handle.bucket, "get", boom)
    with caplog.at_level(logging.ERROR, logger="couchbase_binding.client"):
        result = client.read("usertable", "u1")
    assert result.status is Status.ERROR
    assert result.kind is ErrorKind.UNEXPECTED
    assert "u1" in caplog.text


def test_instances_share_data_and_environment(client_factory, driver):
    a = client_factory()
    b = client_factory()
    a.init()
    b.init()
    try:
        assert a.insert("usertable", "shared", {"x": b"1"}).ok
        assert b.read("usertable", "shared").record == {"x": b"1"}
        assert len(driver.environments) == 1
    finally:
        a.cleanup()
        b.cleanup()
    assert driver.environments[0].shutdown_calls == 1


def test_operations_after_cleanup_fail_cleanly(client_factory):
    c = client_factory()
    c.init()
    c.cleanup()
    assert c.read("usertable", "u").status is Status.ERROR
    assert c.insert("usertable", "u", {"a": b"1"}).kind is ErrorKind.CONNECTION


def test_operations_before_init_fail_cleanly(client_factory):
    c = client_factory()
    assert c.read("usertable", "u").kind is ErrorKind.CONNECTION


def test_cleanup_twice_is_double_release(client_factory):
    c = client_factory()
    c.init()
    c.cleanup()
    with pytest.raises(DoubleReleaseError):
        c.cleanup()


def test_cleanup_without_init_is_rejected(client_factory):
    with pytest.raises(DoubleReleaseError):
        client_factory().cleanup()


def test_init_failure_is_fatal(client_factory):
    c = client_factory(bucket="secure", password="wrong")
    with pytest.raises(ConnectionFault):
        c.init()
    assert c.handle is None


def test_context_manager_releases(manager: ConnectionManager):
    with CouchbaseClient({"couchbase.driver": "memory"}, manager=manager, env_file=None) as c:
        assert c.insert("usertable", "u", {"a": b"1"}).ok
        target = c.handle.target
        assert manager.ref_count(target) == 1
    assert manager.ref_count(target) == 0


def test_settings_come_from_environment(client_factory, monkeypatch):
    monkeypatch.setenv("COUCHBASE_REPLICATE_TO", "1")
    c = client_factory()
    c.init()
    try:
        assert c.durability.replicate_to is ReplicationLevel.ONE
    finally:
        c.cleanup()


def test_init_twice_is_rejected_and_keeps_one_lease(client_factory, manager, driver):
    c = client_factory()
    c.init()
    target = c.handle.target
    with pytest.raises(ConnectionFault):
        c.init()
    assert manager.ref_count(target) == 1

    c.cleanup()
    assert manager.ref_count(target) == 0
    assert driver.environments[0].shutdown_calls == 1


def test_reinit_after_cleanup_is_allowed(client_factory, manager):
    c = client_factory()
    c.init()
    c.cleanup()
    c.init()
    assert manager.ref_count(c.handle.target) == 1
    c.cleanup()


def test_read_with_bare_string_field(client):
    client.insert("usertable", "u", {"name": b"ann", "n": b"1", "a": b"2", "m": b"3", "e": b"4"})
    assert client.read("usertable", "u", "name").record == {"name": b"ann"}
