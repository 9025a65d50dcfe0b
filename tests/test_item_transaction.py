"""Tests for the attendance transaction body."""

from __future__ import annotations

import unittest
from unittest.mock import MagicMock

from meetup.errors import NotFoundError, ProviderRejectedError
from meetup.item.models import AttendanceUpdate
from meetup.item.services import ItemService
from meetup.membership import Outcome
from meetup.messaging.models import ADD, REMOVE
from meetup.user.models import Identity

U1 = Identity(key="u1", instance_id="iid1", registration_token="tok1")
U2 = Identity(key="u2", instance_id="iid2", registration_token="tok2")
ADDRESSES = {"u1": "tok1", "u2": "tok2"}


def item_snapshot(members: list[dict], people: int = 4) -> MagicMock:
    snapshot = MagicMock()
    snapshot.exists = True
    snapshot.id = "item1"
    snapshot.to_dict.return_value = {
        "image": "https://example.com/a.jpg",
        "people": people,
        "attendant": sum(m["attendant"] for m in members),
        "latitude": 25.0,
        "longitude": 121.5,
        "createTime": None,
        "members": members,
        "groupName": "u1abc",
        "groupKey": "K1",
    }
    return snapshot


class ItemTransactionTestCase(unittest.TestCase):
    """Test case for ItemService._attend_in_transaction."""

    def setUp(self) -> None:
        self.transaction = MagicMock()
        self.item_ref = MagicMock()
        self.group_client = MagicMock()
        self.group_client.send.return_value = "K1"
        self.directory = MagicMock()
        self.directory.address_of.side_effect = ADDRESSES.get

    def run_transaction(self, identity: Identity, delta: int):
        return ItemService._attend_in_transaction(
            self.transaction,
            self.item_ref,
            identity,
            AttendanceUpdate(delta=delta),
            self.group_client,
            self.directory,
        )

    def test_join_sends_add_then_writes(self) -> None:
        self.item_ref.get.return_value = item_snapshot([{"userKey": "u1", "attendant": 1}])

        result = self.run_transaction(U2, 2)

        # Verify snapshot was read with transaction
        self.item_ref.get.assert_called_with(transaction=self.transaction)
        self.assertEqual(result.outcome, Outcome.APPEND_MEMBER)
        op = self.group_client.send.call_args[0][0]
        self.assertEqual((op.operation, op.registration_ids), (ADD, ["tok2"]))

        ref, data = self.transaction.set.call_args[0]
        self.assertEqual(ref, self.item_ref)
        self.assertEqual(data["attendant"], 3)
        self.assertEqual(
            data["members"],
            [{"userKey": "u1", "attendant": 1}, {"userKey": "u2", "attendant": 2}],
        )

    def test_rejected_operation_writes_nothing(self) -> None:
        self.item_ref.get.return_value = item_snapshot([{"userKey": "u1", "attendant": 1}])
        self.group_client.send.side_effect = ProviderRejectedError()

        with self.assertRaises(ProviderRejectedError):
            self.run_transaction(U2, 1)
        self.transaction.set.assert_not_called()
        self.transaction.delete.assert_not_called()

    def test_owner_leaving_deletes(self) -> None:
        self.item_ref.get.return_value = item_snapshot(
            [{"userKey": "u1", "attendant": 1}, {"userKey": "u2", "attendant": 1}]
        )
        self.group_client.send.side_effect = [ProviderRejectedError(), "K1"]

        result = self.run_transaction(U1, -1)

        self.assertTrue(result.closes_item)
        self.transaction.delete.assert_called_once_with(self.item_ref)
        self.transaction.set.assert_not_called()
        operations = [c[0][0] for c in self.group_client.send.call_args_list]
        self.assertEqual([op.operation for op in operations], [REMOVE, REMOVE])

    def test_missing_item(self) -> None:
        snapshot = MagicMock()
        snapshot.exists = False
        self.item_ref.get.return_value = snapshot
        with self.assertRaises(NotFoundError):
            self.run_transaction(U1, 1)


if __name__ == "__main__":
    unittest.main()
