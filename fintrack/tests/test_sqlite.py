"""Tests for the user-scoped transaction store."""

from datetime import date

import pytest

from fintrack.models import TransactionCreate, TransactionType, TransactionUpdate

JAN_1 = date(2024, 1, 1)
DEC_31 = date(2024, 12, 31)


def make_create(
    amount: float = 10.0,
    txn_date: date = date(2024, 3, 15),
    type: TransactionType = TransactionType.EXPENSE,
    category: str | None = "Food",
    description: str | None = "Lunch",
) -> TransactionCreate:
    return TransactionCreate(type=type, category=category, amount=amount, description=description, date=txn_date)


@pytest.fixture
def alice(database):
    return database.for_user("alice")


@pytest.fixture
def bob(database):
    return database.for_user("bob")


class TestCreateAndList:
    """Test creating and listing transactions."""

    def test_create_returns_the_stored_row(self, alice):
        """Should return exactly what a later read returns."""
        created = alice.create(make_create(amount=9.99, description=None, category=None))

        assert created.id > 0
        assert created.created_at is not None
        assert alice.get(created.id) == created

    def test_created_transaction_is_listed_unchanged(self, alice):
        """Should list a created transaction with identical fields."""
        created = alice.create(make_create(amount=42.5, description="Groceries", category="Food"))

        page = alice.list_transactions(JAN_1, DEC_31)

        assert page.total_count == 1
        listed = page.transactions[0]
        assert listed.id == created.id
        assert listed.type == TransactionType.EXPENSE
        assert listed.category == "Food"
        assert listed.amount == 42.5
        assert listed.description == "Groceries"
        assert listed.date == date(2024, 3, 15)
        assert listed.user_id == "alice"

    def test_lists_newest_first_with_pagination(self, alice):
        for day in range(1, 6):
            alice.create(make_create(txn_date=date(2024, 5, day)))

        page = alice.list_transactions(JAN_1, DEC_31, limit=2, offset=1)

        assert page.total_count == 5
        assert [t.date for t in page.transactions] == [date(2024, 5, 4), date(2024, 5, 3)]

    def test_date_range_is_inclusive(self, alice):
        alice.create(make_create(txn_date=date(2024, 3, 1)))
        alice.create(make_create(txn_date=date(2024, 3, 31)))
        alice.create(make_create(txn_date=date(2024, 4, 1)))

        page = alice.list_transactions(date(2024, 3, 1), date(2024, 3, 31))

        assert page.total_count == 2

    def test_search_matches_description_or_category_case_insensitively(self, alice):
        alice.create(make_create(description="Coffee at Blue Bottle", category="Food"))
        alice.create(make_create(description="Train ticket", category="Transportation"))
        alice.create(make_create(description="Monthly pass", category="TRANSPORTATION"))

        assert alice.list_transactions(JAN_1, DEC_31, search="coffee").total_count == 1
        assert alice.list_transactions(JAN_1, DEC_31, search="transport").total_count == 2

    def test_search_treats_wildcards_literally(self, alice):
        alice.create(make_create(description="100% refund"))
        alice.create(make_create(description="Lunch"))

        assert alice.list_transactions(JAN_1, DEC_31, search="%").total_count == 1

    def test_filters_by_type_and_category(self, alice):
        alice.create(make_create(type=TransactionType.INCOME, category="Salary"))
        alice.create(make_create(category="Food"))
        alice.create(make_create(category="Bills"))

        assert alice.list_transactions(JAN_1, DEC_31, type=TransactionType.INCOME).total_count == 1
        assert alice.list_transactions(JAN_1, DEC_31, category="Bills").total_count == 1

    def test_rejects_out_of_range_limit(self, alice):
        with pytest.raises(ValueError):
            alice.list_transactions(JAN_1, DEC_31, limit=101)


class TestUserScoping:
    """Test that users never see or change each other's rows."""

    def test_list_only_returns_own_rows(self, alice, bob):
        alice.create(make_create())
        bob.create(make_create())
        bob.create(make_create())

        assert alice.list_transactions(JAN_1, DEC_31).total_count == 1
        assert bob.list_transactions(JAN_1, DEC_31).total_count == 2

    def test_delete_of_other_users_row_is_a_noop(self, alice, bob):
        """Should leave the row intact and report zero deletions."""
        txn = alice.create(make_create())

        assert bob.delete(txn.id) == 0
        assert alice.get(txn.id) is not None

    def test_delete_own_row(self, alice):
        txn = alice.create(make_create())
        assert alice.delete(txn.id) == 1
        assert alice.get(txn.id) is None

    def test_update_of_other_users_row_returns_none(self, alice, bob):
        txn = alice.create(make_create(amount=10.0))

        assert bob.update(txn.id, TransactionUpdate(amount=99.0)) is None
        assert alice.get(txn.id).amount == 10.0

    def test_get_of_other_users_row_returns_none(self, alice, bob):
        txn = alice.create(make_create())
        assert bob.get(txn.id) is None


class TestUpdate:
    """Test partial updates."""

    def test_updates_only_sent_fields(self, alice):
        txn = alice.create(make_create(amount=10.0, description="Lunch", category="Food"))

        updated = alice.update(txn.id, TransactionUpdate(amount=12.5, date=date(2024, 6, 1)))

        assert updated.amount == 12.5
        assert updated.date == date(2024, 6, 1)
        assert updated.description == "Lunch"
        assert updated.category == "Food"

    def test_can_clear_category(self, alice):
        txn = alice.create(make_create(category="Food"))
        updated = alice.update(txn.id, TransactionUpdate(category=None))
        assert updated.category is None

    def test_ignores_null_for_required_fields(self, alice):
        txn = alice.create(make_create(amount=10.0))
        updated = alice.update(txn.id, TransactionUpdate(amount=None, type=TransactionType.INCOME))
        assert updated.amount == 10.0
        assert updated.type == TransactionType.INCOME


class TestSummaries:
    """Test summary and category queries."""

    def test_summary_groups_by_category(self, alice, bob):
        alice.create(make_create(amount=30.0, category="Food"))
        alice.create(make_create(amount=20.0, category="Food"))
        alice.create(make_create(amount=70.0, category="Bills"))
        alice.create(make_create(amount=5.0, category=None))
        alice.create(make_create(amount=1000.0, type=TransactionType.INCOME, category="Salary"))
        bob.create(make_create(amount=500.0, category="Food"))

        summary = alice.summary(JAN_1, DEC_31, TransactionType.EXPENSE)

        assert [(row.category, row.total) for row in summary] == [
            ("Bills", 70.0),
            ("Food", 50.0),
            ("Uncategorized", 5.0),
        ]

    def test_categories_are_distinct_sorted_and_non_null(self, alice, bob):
        alice.create(make_create(category="Travel"))
        alice.create(make_create(category="Food"))
        alice.create(make_create(category="Food"))
        alice.create(make_create(category=None))
        bob.create(make_create(category="Bills"))

        assert alice.categories(JAN_1, DEC_31) == ["Food", "Travel"]

    def test_transaction_count(self, database, alice, bob):
        alice.create(make_create())
        bob.create(make_create())
        assert alice.count() == 1
        assert database.get_transaction_count() == 2

    def test_for_user_requires_id(self, database):
        with pytest.raises(ValueError):
            database.for_user("")
