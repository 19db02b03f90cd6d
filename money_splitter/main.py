"""
Money Splitter - CLI Interface

Record shared bills, list their participants and see who owes whom.
"""
import sys
from typing import Optional

from .config import get_settings
from .logging_config import configure_logging
from .models import Bill, EqualSplitResult, SplitMode, SettlementResult
from .settlement import calculate_settlements
from .store import BillStore, InMemoryBillStore, JsonBillStore, StoreError
from .validation import BillDraft, InvalidBill, parse_amount, validate_bill


def describe_result(bill: Bill, result: SettlementResult, symbol: str = "$") -> list[str]:
    """
    Render a settlement result as display lines.

    Which message explains a missing settlement list is decided here, from
    the bill, not by the calculator.
    """
    if isinstance(result, EqualSplitResult):
        lines = [f"Amount per person: {symbol}{result.amount_per_person:.2f}"]
        if result.settlements is None:
            if bill.designated_payer:
                lines.append("The person who paid is not in the participants list.")
            else:
                lines.append("No payer specified. Each person should pay their share.")
            return lines
        if not result.settlements:
            lines.append("Nothing to settle.")
            return lines
    else:
        lines = [f"Equal share: {symbol}{result.equal_share:.2f}"]
        for name, balance in result.balances.items():
            if balance > 0:
                status = f"is owed {symbol}{balance:.2f}"
            elif balance < 0:
                status = f"owes {symbol}{-balance:.2f}"
            else:
                status = "is settled"
            lines.append(f"  {name}: {status}")
        if not result.settlements:
            lines.append("Everyone paid their equal share.")
            return lines

    for s in result.settlements:
        lines.append(
            f"  {s.from_participant} owes {s.to_participant} {symbol}{s.amount:.2f}"
        )
    return lines


class MoneySplitterApp:
    """Main application class for the Money Splitter."""

    def __init__(self, store: BillStore, currency_symbol: str = "$"):
        self.store = store
        self.symbol = currency_symbol
        self.draft: Optional[BillDraft] = None

    def _require_draft(self) -> Optional[BillDraft]:
        if self.draft is None:
            print("Error: Start a bill first with 'new <name>'!")
        return self.draft

    def _bill_at(self, position: str) -> Optional[Bill]:
        bills = self.store.list()
        try:
            index = int(position) - 1
        except ValueError:
            index = -1
        if not 0 <= index < len(bills):
            print(f"Error: No bill number {position}")
            return None
        return bills[index]

    def list_bills(self) -> None:
        """Display all saved bills."""
        print("\n--- My Bills ---")
        df = self.store.summary_dataframe()
        if df.empty:
            print("No bills yet. Create your first bill!")
            return

        for i, row in enumerate(df.itertuples(index=False), 1):
            print(f"  {i}. {row.name}: {row.participants} participants · "
                  f"{self.symbol}{row.total:.2f} [{row.mode}]")
        print()

    def new_bill(self, name: str) -> None:
        """Start a new bill draft."""
        self.draft = BillDraft(name=name)
        print(f"New bill: {name}")

    def set_mode(self, mode: str) -> None:
        if not self._require_draft():
            return
        try:
            self.draft.split_mode = SplitMode(mode.lower())
        except ValueError:
            print(f"Error: Unknown split mode '{mode}' (use equal or individual)")
            return
        print(f"Split mode: {self.draft.split_mode.value}")

    def set_amount(self, text: str) -> None:
        if not self._require_draft():
            return
        try:
            self.draft.total_amount = parse_amount(text)
        except InvalidBill as e:
            print(f"Error: {e}")
            return
        if self.draft.split_mode is SplitMode.INDIVIDUAL:
            print("Note: individual bills total what participants paid")
        print(f"Total amount: {self.symbol}{self.draft.total_amount:.2f}")

    def set_payer(self, name: str) -> None:
        if not self._require_draft():
            return
        self.draft.designated_payer = name.strip() or None
        print(f"Paid by: {self.draft.designated_payer or '(nobody)'}")

    def add_participant(self, name: str, paid: Optional[str] = None) -> None:
        """Add a participant to the draft."""
        if not self._require_draft():
            return
        try:
            paid_amount = parse_amount(paid) if paid is not None else None
            self.draft.add_participant(name, paid_amount)
        except InvalidBill as e:
            print(f"Error: {e}")
            return
        if paid_amount is not None:
            print(f"Added: {name.strip()} (paid {self.symbol}{paid_amount:.2f})")
        else:
            print(f"Added: {name.strip()}")

    def remove_participant(self, position: str) -> None:
        if not self._require_draft():
            return
        try:
            removed = self.draft.remove_participant(int(position) - 1)
        except (ValueError, InvalidBill) as e:
            print(f"Error: {e}")
            return
        print(f"Removed: {removed.name}")

    def show_draft(self) -> None:
        if not self._require_draft():
            return
        d = self.draft
        print(f"\n--- Draft: {d.name or '(unnamed)'} [{d.split_mode.value}] ---")
        print(f"  Total: {self.symbol}{d.total:.2f}")
        if d.designated_payer:
            print(f"  Paid by: {d.designated_payer}")
        for i, p in enumerate(d.participants, 1):
            if d.split_mode is SplitMode.INDIVIDUAL:
                print(f"  {i}. {p.name} paid {self.symbol}{p.paid_amount or 0.0:.2f}")
            else:
                print(f"  {i}. {p.name}")
        print()

    def save_bill(self) -> Optional[Bill]:
        """Validate the draft and store it."""
        if not self._require_draft():
            return None
        try:
            bill = self.draft.build()
        except InvalidBill as e:
            print(f"Error: {e}")
            return None
        self.store.save(bill)
        self.draft = None
        print(f"Saved bill: {bill.name} ({self.symbol}{bill.total_amount:.2f})")
        return bill

    def show_bill(self, position: str) -> None:
        """Display a bill's details and how to settle it."""
        bill = self._bill_at(position)
        if bill is None:
            return
        try:
            result = calculate_settlements(validate_bill(bill))
        except InvalidBill as e:
            print(f"Error: Bill {position} cannot be split: {e}")
            return

        print(f"\n--- {bill.name} ---")
        print(f"Total: {self.symbol}{bill.total_amount:.2f}")
        if bill.designated_payer and bill.split_mode is SplitMode.EQUAL:
            print(f"Paid by: {bill.designated_payer}")
        print("Participants:")
        for p in bill.participants:
            if bill.split_mode is SplitMode.INDIVIDUAL:
                print(f"  {p.name} paid {self.symbol}{p.paid_amount or 0.0:.2f}")
            else:
                print(f"  {p.name}")
        print("Split details:")
        for line in describe_result(bill, result, self.symbol):
            print(line)
        print()

    def delete_bill(self, position: str) -> None:
        bill = self._bill_at(position)
        if bill is None:
            return
        self.store.delete(bill.id)
        print(f"Deleted bill: {bill.name}")


HELP = """Commands:
  list                     - Show saved bills
  new <name>               - Start a new bill
  mode equal|individual    - Choose how the bill is split
  amount <amt>             - Set the total (equal mode)
  payer [name]             - Set or clear who paid (equal mode)
  add <name> [paid]        - Add participant (paid amount in individual mode)
  remove <n>               - Remove the n-th participant
  draft                    - Show the bill being created
  save                     - Save the bill
  show <n>                 - Show bill n with its settlements
  delete <n>               - Delete bill n
  help                     - Show this help
  quit                     - Exit"""


def handle_command(app: MoneySplitterApp, line: str) -> bool:
    """
    Run one command line against the app.

    Returns:
        False when the user asked to quit
    """
    cmd = line.strip().split()
    if not cmd:
        return True

    action = cmd[0].lower()
    args = cmd[1:]

    if action in ("quit", "exit"):
        print("Goodbye!")
        return False
    elif action == "help":
        print(HELP)
    elif action == "list":
        app.list_bills()
    elif action == "new" and args:
        app.new_bill(" ".join(args))
    elif action == "mode" and len(args) == 1:
        app.set_mode(args[0])
    elif action == "amount" and len(args) == 1:
        app.set_amount(args[0])
    elif action == "payer":
        app.set_payer(" ".join(args))
    elif action == "add" and args:
        if (len(args) >= 2 and app.draft is not None
                and app.draft.split_mode is SplitMode.INDIVIDUAL):
            app.add_participant(" ".join(args[:-1]), args[-1])
        else:
            app.add_participant(" ".join(args))
    elif action == "remove" and len(args) == 1:
        app.remove_participant(args[0])
    elif action == "draft":
        app.show_draft()
    elif action == "save":
        app.save_bill()
    elif action == "show" and len(args) == 1:
        app.show_bill(args[0])
    elif action == "delete" and len(args) == 1:
        app.delete_bill(args[0])
    else:
        print("Unknown command. Type 'help' for commands.")
    return True


def interactive_mode(app: MoneySplitterApp) -> None:
    """Run the application in interactive mode."""
    print("=" * 50)
    print("  Money Splitter - Interactive Mode")
    print("=" * 50)
    print()
    print(HELP)
    print()

    while True:
        try:
            if not handle_command(app, input("> ")):
                break
        except (KeyboardInterrupt, EOFError):
            print("\nGoodbye!")
            break


def demo() -> None:
    """Run a demonstration of the money splitter."""
    print("=" * 50)
    print("  Money Splitter - Demo")
    print("=" * 50)

    app = MoneySplitterApp(InMemoryBillStore())

    for line in [
        "new Dinner", "amount 90", "payer Alice",
        "add Alice", "add Bob", "add Carol", "save",
        "new Groceries", "amount 45", "add Alice", "add Bob", "save",
        "new Road trip", "mode individual",
        "add Alice 60", "add Bob 0", "add Carol 30", "save",
        "list", "show 1", "show 2", "show 3",
    ]:
        print(f"> {line}")
        handle_command(app, line)


def main(argv: Optional[list[str]] = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    settings = get_settings()
    configure_logging(settings.log_level)

    if "--demo" in args:
        demo()
        return 0

    store_path = settings.store_path
    if "--store" in args:
        i = args.index("--store")
        if i + 1 >= len(args):
            print("Error: --store needs a path")
            return 2
        store_path = args[i + 1]

    try:
        store = JsonBillStore(store_path, key=settings.store_key)
    except StoreError as e:
        print(f"Error: {e}")
        return 1

    interactive_mode(MoneySplitterApp(store, settings.currency_symbol))
    return 0


if __name__ == "__main__":
    sys.exit(main())
