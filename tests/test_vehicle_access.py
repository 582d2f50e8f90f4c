import unittest

from sqlalchemy import select

from garage_api.auth import Principal
from garage_api.models import Organization, User, Vehicle
from garage_api.parties import RegisteredOwner
from garage_api.schemas.vehicle import BookingFormVehicle, VehicleListItem
from garage_api.services.vehicle_access import (
    access_filter,
    get_accessible_vehicle,
    list_vehicles,
    to_list_item,
)
from tests.factories import DatabaseTestCase


class TestAccessFilter(DatabaseTestCase):

    async def _visible_ids(self, principal):
        result = await self.db.execute(select(Vehicle.id).where(access_filter(principal)))
        return set(result.scalars().all())

    async def test_visibility_matches_owner_or_organization(self):
        result = await self.db.execute(select(Vehicle))
        vehicles = result.scalars().all()
        for principal in (self.staff, self.other_staff, self.alice, self.bob):
            visible = await self._visible_ids(principal)
            for vehicle in vehicles:
                expected = vehicle.owner_user_id == principal.user_id or (
                    principal.org_id is not None and vehicle.org_id == principal.org_id
                )
                self.assertEqual(vehicle.id in visible, expected, (principal, vehicle.id))

    async def test_owner_sees_cars_across_garages(self):
        visible = await self._visible_ids(self.alice)
        self.assertIn(self.ids["private_car"], visible)
        self.assertIn(self.ids["alice_car"], visible)
        self.assertNotIn(self.ids["bob_car"], visible)

    async def test_principal_without_org_does_not_match_orgless_vehicles(self):
        self.db.add(Vehicle(make="Orphan", model="Car"))
        await self.db.commit()
        visible = await self._visible_ids(self.bob)
        self.assertEqual(visible, {self.ids["bob_car"]})

    async def test_get_accessible_vehicle(self):
        self.assertIsNotNone(await get_accessible_vehicle(self.db, self.staff, self.ids["walk_in_car"]))
        self.assertIsNone(await get_accessible_vehicle(self.db, self.other_staff, self.ids["walk_in_car"]))
        self.assertIsNone(await get_accessible_vehicle(self.db, self.staff, 99999))


class TestListVehicles(DatabaseTestCase):

    async def test_staff_listing_excludes_inactive_and_foreign(self):
        page = await list_vehicles(self.db, self.staff)
        ids = {item.vehicle_id for item in page.items}
        self.assertEqual(ids, {
            self.ids["alice_car"], self.ids["alice_second"], self.ids["bob_car"],
            self.ids["walk_in_car"], self.ids["walk_in_again"],
        })
        self.assertEqual(page.total, 5)
        self.assertTrue(all(isinstance(item, VehicleListItem) for item in page.items))

    async def test_owner_filter_replaces_identity_rule(self):
        page = await list_vehicles(self.db, self.staff, owner_id=self.ids["alice"])
        self.assertEqual({item.id for item in page.items}, {self.ids["alice_car"], self.ids["alice_second"]})
        self.assertTrue(all(isinstance(item, BookingFormVehicle) for item in page.items))

    async def test_owner_filter_stays_inside_callers_organization(self):
        page = await list_vehicles(self.db, self.other_staff, owner_id=self.ids["alice"])
        self.assertEqual(page.items, [])
        self.assertEqual(page.total, 0)

    async def test_owner_filter_without_organization(self):
        page = await list_vehicles(self.db, self.alice, owner_id=self.ids["alice"])
        self.assertEqual(
            {item.id for item in page.items},
            {self.ids["alice_car"], self.ids["alice_second"], self.ids["private_car"]},
        )

    async def test_search_is_case_insensitive_across_fields(self):
        by_plate = await list_vehicles(self.db, self.staff, search="abc-1")
        self.assertEqual([i.vehicle_id for i in by_plate.items], [self.ids["alice_car"]])

        by_make = await list_vehicles(self.db, self.staff, search="VOLKS")
        self.assertEqual(by_make.total, 2)

        by_model = await list_vehicles(self.db, self.staff, search="civic")
        self.assertEqual([i.vehicle_id for i in by_model.items], [self.ids["alice_second"]])

        by_owner = await list_vehicles(self.db, self.staff, search="walter")
        self.assertEqual(by_owner.total, 2)

    async def test_search_treats_wildcards_literally(self):
        page = await list_vehicles(self.db, self.staff, search="%")
        self.assertEqual(page.total, 0)

    async def test_pagination(self):
        garage = Organization(name="Busy Garage")
        self.db.add(garage)
        await self.db.flush()
        self.db.add_all([
            Vehicle(make="Make", model=f"Model {n}", plate=f"PG-{n:02d}", org_id=garage.id)
            for n in range(12)
        ])
        await self.db.commit()
        principal = Principal(user_id=self.ids["staff"], org_id=garage.id)

        second = await list_vehicles(self.db, principal, page=2, limit=5)
        self.assertEqual(len(second.items), 5)
        self.assertEqual(second.total, 12)
        self.assertEqual(second.pages, 3)

        third = await list_vehicles(self.db, principal, page=3, limit=5)
        self.assertEqual(len(third.items), 2)

        first = await list_vehicles(self.db, principal, page=1, limit=5)
        seen = {i.vehicle_id for i in first.items} | {i.vehicle_id for i in second.items} | {
            i.vehicle_id for i in third.items}
        self.assertEqual(len(seen), 12)

    async def test_list_item_projection(self):
        page = await list_vehicles(self.db, self.staff, limit=50)
        rows = {item.vehicle_id: item for item in page.items}

        alice_row = rows[self.ids["alice_car"]]
        self.assertEqual(alice_row.name, "Alice Driver")
        self.assertEqual(alice_row.email, "alice@example.com")
        self.assertEqual(alice_row.registration_no, "ABC-123")
        self.assertEqual(alice_row.car_type, "Toyota Corolla")
        self.assertEqual(alice_row.status, "Active")
        self.assertEqual(alice_row.owner_id, self.ids["alice"])

        # Inactive owner makes the row inactive
        self.assertEqual(rows[self.ids["bob_car"]].status, "Inactive")
        self.assertEqual(rows[self.ids["bob_car"]].name, "N/A")

        walk_in = rows[self.ids["walk_in_car"]]
        self.assertEqual(walk_in.name, "Walter Walkin")
        self.assertEqual(walk_in.email, "N/A")
        self.assertEqual(walk_in.status, "Inactive")
        self.assertIsNone(walk_in.owner_id)


class TestListItemProjection(unittest.TestCase):

    def test_blank_vehicle_renders_placeholders(self):
        vehicle = Vehicle(id=5, make="", model="", is_active=True, owner_user=None)
        item = to_list_item(vehicle)
        self.assertEqual(item.car_type, "N/A")
        self.assertEqual(item.registration_no, "N/A")
        self.assertEqual(item.status, "Inactive")

    def test_active_owner_and_vehicle(self):
        owner = User(id=3, email="o@example.com", name="Owner", is_active=True)
        vehicle = Vehicle(id=6, make="Kia", model="Rio", plate="K-1", is_active=True,
                          owner=RegisteredOwner(user_id=3), owner_user=owner)
        item = to_list_item(vehicle)
        self.assertEqual(item.status, "Active")
        self.assertEqual(item.name, "Owner")


if __name__ == "__main__":
    unittest.main()
