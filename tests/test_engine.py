"""
Tests for recall_core/engine.py, including end-to-end use of the IN-list
builder with a DuckDB-backed transaction cache.
"""

import threading

import pytest

import recall_core.engine as engine_module
from recall_core.engine import RecallEngine, get_engine
from recall_core.transaction import current_cache
from recall_utils.sql_utils import build_id_in_clause, build_string_in_clause


class TestEndToEnd:
    def test_id_in_clause_fetches_matching_records(self, engine):
        query = "SELECT Id, Name FROM accounts WHERE Id IN " + build_id_in_clause({1, 2})

        with engine.transaction() as txn:
            result = txn.cache.fetch_objects(query)

        assert set(result) == {"1", "2"}
        assert result["1"]["Name"] == "Acme"
        assert result["2"]["Name"] == "Globex"

    def test_string_in_clause_list(self, engine):
        query = (
            "SELECT Name FROM accounts WHERE Industry IN "
            + build_string_in_clause({"Retail"})
            + " ORDER BY Name"
        )

        with engine.transaction():
            names = [r["Name"] for r in current_cache().get_list_of_records(query)]

        assert names == ["Acme", "Umbrella"]

    def test_repeated_query_hits_database_once(self, engine):
        query = "SELECT * FROM accounts"
        before = engine.executor.executions

        with engine.transaction() as txn:
            txn.cache.fetch_objects(query)
            txn.cache.fetch_objects(query)
            txn.cache.get_list_of_records(query)
            txn.cache.get_list_of_records(query)

        assert engine.executor.executions - before == 2

    def test_invalid_query_not_cached(self, engine):
        with engine.transaction() as txn:
            with pytest.raises(Exception):
                txn.cache.fetch_objects("SELECT * FROM missing_table")
            assert not txn.cache.has_objects("SELECT * FROM missing_table")


class TestConcurrentPopulation:
    def test_distinct_keys_cache_their_own_rows(self, engine):
        engine.register_records("tagged", [{"Id": str(i)} for i in range(200)])
        queries = {
            i: f"SELECT Id, {i} AS tag FROM tagged WHERE Id = '{i}'"
            for i in range(200)
        }
        errors = []

        with engine.transaction() as txn:
            cache = txn.cache

            def worker(offset):
                try:
                    for i in range(offset, 200, 8):
                        cache.get_list_of_records(queries[i])
                        cache.fetch_objects(queries[i])
                except Exception as e:
                    errors.append(e)

            threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
            for t in threads:
                t.start()
            for t in threads:
                t.join()

            assert errors == []
            for i, query in queries.items():
                assert cache.get_list_of_records(query) == [{"Id": str(i), "tag": i}]
                assert cache.fetch_objects(query) == {str(i): {"Id": str(i), "tag": i}}

    def test_execution_counter_is_exact_under_threads(self, engine):
        before = engine.executor.executions

        def worker():
            for _ in range(25):
                engine.executor.execute("SELECT Id FROM accounts")

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert engine.executor.executions - before == 200


class TestTables:
    def test_register_records_from_dicts(self, engine):
        count = engine.register_records("contacts", [
            {"Id": "c1", "Email": "a@example.com"},
            {"Id": "c2", "Email": "b@example.com"},
        ])

        assert count == 2
        assert engine.tables["contacts"] == "<memory>"
        rows = engine.executor.execute("SELECT Email FROM contacts ORDER BY Id")
        assert rows == [{"Email": "a@example.com"}, {"Email": "b@example.com"}]

    def test_load_csv(self, engine, tmp_path):
        csv_path = tmp_path / "leads.csv"
        csv_path.write_text("Id,Status\n10,Open\n11,Closed\n")

        assert engine.load_csv(csv_path, "leads") == 2
        assert engine.tables["leads"] == str(csv_path)

        with engine.transaction() as txn:
            leads = txn.cache.fetch_objects("SELECT Id, Status FROM leads")
        assert leads == {
            "10": {"Id": "10", "Status": "Open"},
            "11": {"Id": "11", "Status": "Closed"},
        }

    def test_load_csv_missing_file(self, engine, tmp_path):
        with pytest.raises(FileNotFoundError):
            engine.load_csv(tmp_path / "nope.csv", "nope")

    def test_load_csv_empty_file(self, engine, tmp_path):
        csv_path = tmp_path / "empty.csv"
        csv_path.write_text("Id,Status\n")

        with pytest.raises(ValueError, match="empty"):
            engine.load_csv(csv_path, "empty")


class TestSingleton:
    def test_get_engine_returns_same_instance(self, monkeypatch):
        monkeypatch.setattr(engine_module, "_engine_instance", None)

        first = get_engine()
        try:
            assert isinstance(first, RecallEngine)
            assert get_engine() is first
        finally:
            first.close()
