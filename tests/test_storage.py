import os
import unittest

from fake_backend import StorefrontTestCase

import db.crud as crud
from db import database as db_database


class DeviceStorageTestCase(StorefrontTestCase):
    async def asyncSetUp(self):
        # Touch initialization by opening a connection
        async with db_database.connect() as conn:
            self.assertTrue(await db_database._table_exists(conn, "device_storage"))

    async def test_set_get_overwrite_remove(self):
        self.assertIsNone(await crud.get_item("userInfo"))

        await crud.set_item("userInfo", "first")
        await crud.set_item("userInfo", "second")
        self.assertEqual(await crud.get_item("userInfo"), "second")
        self.assertEqual(await crud.list_keys(), ["userInfo"])

        await crud.remove_item("userInfo")
        await crud.remove_item("userInfo")
        self.assertIsNone(await crud.get_item("userInfo"))
        self.assertEqual(await crud.list_keys(), [])

    async def test_json_round_trip_and_corruption(self):
        await crud.set_json("prefs", {"theme": "dark", "ids": [1, 2]})
        self.assertEqual(await crud.get_json("prefs"), {"theme": "dark", "ids": [1, 2]})

        await crud.set_item("prefs", "{broken")
        with self.assertRaises(ValueError):
            await crud.get_json("prefs")

    async def test_survives_reinitialization(self):
        await crud.set_item("k", "v")
        db_database._initialized = False
        self.assertEqual(await crud.get_item("k"), "v")

    async def test_creates_parent_directory(self):
        db_database.DB_PATH = os.path.join(self.temp_dir.name, "nested", "dir", "store.sqlite")
        db_database._initialized = False
        await crud.set_item("k", "v")
        self.assertTrue(os.path.exists(db_database.DB_PATH))


if __name__ == "__main__":
    unittest.main()
