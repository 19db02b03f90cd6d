"""
Tests for bill storage and the command line interface.
"""
import io
import json
import os
import sys
import tempfile
import unittest
from contextlib import redirect_stdout
from pathlib import Path
from unittest import mock

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from money_splitter.main import MoneySplitterApp, describe_result, handle_command, main
from money_splitter.models import Bill, SplitMode
from money_splitter.settlement import calculate_settlements
from money_splitter.store import InMemoryBillStore, JsonBillStore, StoreError


class TestInMemoryBillStore(unittest.TestCase):
    """Tests for the in-memory store."""

    def setUp(self):
        self.store = InMemoryBillStore()
        self.dinner = Bill.equal("Dinner", 90, ["Alice", "Bob"], designated_payer="Alice")
        self.trip = Bill.individual("Trip", {"Alice": 60, "Bob": 0})

    def test_empty(self):
        self.assertEqual(self.store.list(), [])
        self.assertTrue(self.store.summary_dataframe().empty)

    def test_save_keeps_order(self):
        self.store.save(self.dinner)
        self.store.save(self.trip)
        self.assertEqual([b.name for b in self.store.list()], ["Dinner", "Trip"])

    def test_save_same_id_replaces(self):
        self.store.save(self.dinner)
        self.store.save(self.trip)
        renamed = Bill.equal("Supper", 90, ["Alice", "Bob"])
        renamed = Bill.from_dict({**renamed.to_dict(), 'id': self.dinner.id})
        self.store.save(renamed)

        self.assertEqual([b.name for b in self.store.list()], ["Supper", "Trip"])

    def test_get(self):
        self.store.save(self.dinner)
        self.assertEqual(self.store.get(self.dinner.id), self.dinner)
        self.assertIsNone(self.store.get("missing"))

    def test_delete(self):
        self.store.save(self.dinner)
        self.store.save(self.trip)
        self.assertTrue(self.store.delete(self.dinner.id))
        self.assertEqual(self.store.list(), [self.trip])

    def test_delete_unknown_id(self):
        self.store.save(self.dinner)
        self.assertFalse(self.store.delete("missing"))
        self.assertEqual(len(self.store.list()), 1)

    def test_list_returns_copy(self):
        self.store.save(self.dinner)
        self.store.list().clear()
        self.assertEqual(len(self.store.list()), 1)

    def test_summary_dataframe(self):
        self.store.save(self.dinner)
        self.store.save(self.trip)
        df = self.store.summary_dataframe()

        self.assertEqual(len(df), 2)
        self.assertEqual(df['mode'].tolist(), ['equal', 'individual'])
        self.assertEqual(df['total'].tolist(), [90.0, 60.0])
        self.assertEqual(df['participants'].tolist(), [2, 2])


class TestJsonBillStore(unittest.TestCase):
    """Tests for the JSON file store."""

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.path = Path(self.tmp.name) / "nested" / "bills.json"

    def tearDown(self):
        self.tmp.cleanup()

    def test_missing_file_is_empty(self):
        store = JsonBillStore(self.path)
        self.assertEqual(store.list(), [])
        self.assertFalse(self.path.exists())

    def test_save_writes_file(self):
        store = JsonBillStore(self.path)
        bill = Bill.equal("Dinner", 90, ["Alice", "Bob"], designated_payer="Alice")
        store.save(bill)

        with open(self.path, encoding="utf-8") as f:
            data = json.load(f)
        self.assertEqual(list(data.keys()), ["bills"])
        self.assertEqual(data["bills"][0]["name"], "Dinner")
        self.assertEqual(data["bills"][0]["split_mode"], "equal")

    def test_reload(self):
        store = JsonBillStore(self.path)
        dinner = Bill.equal("Dinner", 90, ["Alice", "Bob"], designated_payer="Alice")
        trip = Bill.individual("Trip", {"Alice": 60, "Bob": 0, "Carol": 30})
        store.save(dinner)
        store.save(trip)

        reloaded = JsonBillStore(self.path)
        self.assertEqual(reloaded.list(), [dinner, trip])
        self.assertEqual(
            calculate_settlements(reloaded.get(trip.id)),
            calculate_settlements(trip)
        )

    def test_delete_persists(self):
        store = JsonBillStore(self.path)
        bill = Bill.equal("Dinner", 90, ["Alice"])
        store.save(bill)
        store.delete(bill.id)

        self.assertEqual(JsonBillStore(self.path).list(), [])

    def test_custom_key(self):
        store = JsonBillStore(self.path, key="money-splitter")
        store.save(Bill.equal("Dinner", 90, ["Alice"]))

        with open(self.path, encoding="utf-8") as f:
            data = json.load(f)
        self.assertIn("money-splitter", data)
        self.assertEqual(JsonBillStore(self.path).list(), [])

    def test_corrupt_file(self):
        self.path.parent.mkdir(parents=True)
        self.path.write_text("{not json", encoding="utf-8")
        with self.assertRaises(StoreError):
            JsonBillStore(self.path)

    def test_wrong_shape(self):
        self.path.parent.mkdir(parents=True)
        self.path.write_text(json.dumps({"bills": [{"name": "no id"}]}), encoding="utf-8")
        with self.assertRaises(StoreError):
            JsonBillStore(self.path)

    def test_failed_write_keeps_previous_file(self):
        store = JsonBillStore(self.path)
        dinner = Bill.equal("Dinner", 90, ["Alice", "Bob"])
        store.save(dinner)

        with mock.patch("money_splitter.store.json.dump", side_effect=OSError("disk full")):
            with self.assertRaises(OSError):
                store.save(Bill.equal("Lunch", 20, ["Alice"]))

        self.assertEqual(JsonBillStore(self.path).list(), [dinner])
        self.assertEqual(os.listdir(self.path.parent), ["bills.json"])


class TestDescribeResult(unittest.TestCase):
    """Tests for the display messages."""

    def test_payer_not_participant_message(self):
        bill = Bill.equal("Dinner", 90, ["Alice", "Bob", "Carol"], designated_payer="Dave")
        lines = describe_result(bill, calculate_settlements(bill))
        self.assertEqual(lines, [
            "Amount per person: $30.00",
            "The person who paid is not in the participants list.",
        ])

    def test_no_payer_message(self):
        bill = Bill.equal("Dinner", 90, ["Alice", "Bob", "Carol"])
        lines = describe_result(bill, calculate_settlements(bill))
        self.assertIn("No payer specified. Each person should pay their share.", lines)

    def test_transfers(self):
        bill = Bill.equal("Dinner", 90, ["Alice", "Bob", "Carol"], designated_payer="Alice")
        lines = describe_result(bill, calculate_settlements(bill), symbol="€")
        self.assertEqual(lines[0], "Amount per person: €30.00")
        self.assertIn("  Bob owes Alice €30.00", lines)
        self.assertIn("  Carol owes Alice €30.00", lines)

    def test_payer_with_nothing_to_settle(self):
        for bill in [
            Bill.equal("Solo", 42, ["Alice"], designated_payer="Alice"),
            Bill.equal("Free", 0, ["Alice", "Bob"], designated_payer="Alice"),
        ]:
            lines = describe_result(bill, calculate_settlements(bill))
            self.assertEqual(lines[-1], "Nothing to settle.")

    def test_everyone_equal(self):
        bill = Bill.individual("Trip", {"Alice": 30, "Bob": 30})
        lines = describe_result(bill, calculate_settlements(bill))
        self.assertEqual(lines[-1], "Everyone paid their equal share.")

    def test_individual_balances(self):
        bill = Bill.individual("Trip", {"Alice": 60, "Bob": 0, "Carol": 30})
        lines = describe_result(bill, calculate_settlements(bill))
        self.assertIn("  Alice: is owed $30.00", lines)
        self.assertIn("  Bob: owes $30.00", lines)
        self.assertIn("  Carol: is settled", lines)
        self.assertEqual(lines[-1], "  Bob owes Alice $30.00")


class TestCommandLine(unittest.TestCase):
    """Tests for the interactive commands."""

    def setUp(self):
        self.store = InMemoryBillStore()
        self.app = MoneySplitterApp(self.store)

    def run_commands(self, *lines):
        out = io.StringIO()
        with redirect_stdout(out):
            for line in lines:
                handle_command(self.app, line)
        return out.getvalue()

    def test_create_equal_bill(self):
        output = self.run_commands(
            "new Dinner", "amount 90", "payer Alice",
            "add Alice", "add Bob", "add Carol", "save"
        )
        self.assertIn("Saved bill: Dinner ($90.00)", output)

        bills = self.store.list()
        self.assertEqual(len(bills), 1)
        self.assertEqual(bills[0].designated_payer, "Alice")
        self.assertEqual(bills[0].participant_names, ["Alice", "Bob", "Carol"])
        self.assertIsNone(self.app.draft)

    def test_create_individual_bill(self):
        self.run_commands(
            "new Road trip", "mode individual",
            "add Alice 60", "add Bob 0", "add Carol 30", "save"
        )
        bill = self.store.list()[0]
        self.assertEqual(bill.name, "Road trip")
        self.assertEqual(bill.split_mode, SplitMode.INDIVIDUAL)
        self.assertEqual(bill.total_amount, 90.0)

    def test_equal_mode_names_with_spaces(self):
        self.run_commands("new Lunch", "amount 20", "add Mary Ann", "save")
        self.assertEqual(self.store.list()[0].participant_names, ["Mary Ann"])

    def test_save_without_participants_is_rejected(self):
        output = self.run_commands("new Dinner", "amount 90", "save")
        self.assertIn("At least one participant is required", output)
        self.assertEqual(self.store.list(), [])
        self.assertIsNotNone(self.app.draft)

    def test_duplicate_participant_is_rejected(self):
        output = self.run_commands("new Dinner", "amount 90", "add Alice", "add Alice", "save")
        self.assertIn("Duplicate participant: Alice", output)
        self.assertEqual(self.store.list(), [])

    def test_commands_need_a_draft(self):
        output = self.run_commands("add Alice")
        self.assertIn("Start a bill first", output)

    def test_bad_amount(self):
        output = self.run_commands("new Dinner", "amount lots")
        self.assertIn("Not a valid amount", output)

    def test_bad_mode(self):
        output = self.run_commands("new Dinner", "mode shares")
        self.assertIn("Unknown split mode", output)

    def test_remove_participant(self):
        self.run_commands("new Dinner", "amount 10", "add Alice", "add Bob", "remove 1", "save")
        self.assertEqual(self.store.list()[0].participant_names, ["Bob"])

    def test_list_and_show(self):
        self.run_commands(
            "new Dinner", "amount 90", "payer Alice",
            "add Alice", "add Bob", "add Carol", "save"
        )
        output = self.run_commands("list", "show 1")
        self.assertIn("1. Dinner: 3 participants · $90.00 [equal]", output)
        self.assertIn("Paid by: Alice", output)
        self.assertIn("  Bob owes Alice $30.00", output)

    def test_list_empty(self):
        output = self.run_commands("list")
        self.assertIn("No bills yet", output)

    def test_show_unknown_bill(self):
        output = self.run_commands("show 3")
        self.assertIn("No bill number 3", output)

    def test_show_individual_bill_lists_paid_amounts(self):
        self.run_commands(
            "new Road trip", "mode individual",
            "add Alice 60", "add Bob 0", "add Carol 30", "save"
        )
        output = self.run_commands("show 1")
        self.assertIn("  Alice paid $60.00", output)
        self.assertIn("  Bob paid $0.00", output)
        self.assertIn("  Bob owes Alice $30.00", output)

    def test_show_stored_bill_without_participants(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "bills.json"
            path.write_text(json.dumps({"bills": [
                {"id": "x", "name": "X", "total_amount": 10, "participants": []}
            ]}), encoding="utf-8")
            self.app = MoneySplitterApp(JsonBillStore(path))

            out = io.StringIO()
            with redirect_stdout(out):
                self.assertTrue(handle_command(self.app, "show 1"))
                self.assertTrue(handle_command(self.app, "list"))

        output = out.getvalue()
        self.assertIn("Error: Bill 1 cannot be split", output)
        self.assertIn("At least one participant is required", output)
        self.assertIn("1. X: 0 participants", output)

    def test_delete(self):
        self.run_commands("new Dinner", "amount 90", "add Alice", "save")
        output = self.run_commands("delete 1")
        self.assertIn("Deleted bill: Dinner", output)
        self.assertEqual(self.store.list(), [])

    def test_quit(self):
        with redirect_stdout(io.StringIO()):
            self.assertFalse(handle_command(self.app, "quit"))
            self.assertTrue(handle_command(self.app, "list"))

    def test_unknown_command(self):
        output = self.run_commands("frobnicate")
        self.assertIn("Unknown command", output)


class TestMain(unittest.TestCase):
    """Tests for the program entry point."""

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.path = Path(self.tmp.name) / "bills.json"

    def tearDown(self):
        self.tmp.cleanup()

    def run_main(self, argv, inputs=None):
        out = io.StringIO()
        with redirect_stdout(out), mock.patch("builtins.input", side_effect=inputs or []):
            code = main(argv)
        return code, out.getvalue()

    def test_demo(self):
        code, output = self.run_main(["--demo"])
        self.assertEqual(code, 0)
        self.assertIn("Money Splitter - Demo", output)
        self.assertIn("  Bob owes Alice $30.00", output)
        self.assertIn("No payer specified. Each person should pay their share.", output)
        self.assertFalse(self.path.exists())

    def test_store_without_path(self):
        code, output = self.run_main(["--store"])
        self.assertEqual(code, 2)
        self.assertIn("Error: --store needs a path", output)

    def test_corrupt_store(self):
        self.path.write_text("{not json", encoding="utf-8")
        code, output = self.run_main(["--store", str(self.path)])
        self.assertEqual(code, 1)
        self.assertIn("Error: Cannot read bills from", output)

    def test_quit(self):
        code, output = self.run_main(["--store", str(self.path)], inputs=["quit"])
        self.assertEqual(code, 0)
        self.assertIn("Goodbye!", output)

    def test_end_of_input(self):
        code, output = self.run_main(["--store", str(self.path)], inputs=EOFError())
        self.assertEqual(code, 0)
        self.assertIn("Goodbye!", output)

    def test_session_persists_bills(self):
        code, _ = self.run_main(["--store", str(self.path)], inputs=[
            "new Dinner", "amount 90", "payer Alice",
            "add Alice", "add Bob", "save", "quit",
        ])
        self.assertEqual(code, 0)

        bills = JsonBillStore(self.path).list()
        self.assertEqual([b.name for b in bills], ["Dinner"])
        self.assertEqual(bills[0].designated_payer, "Alice")


if __name__ == '__main__':
    unittest.main()
