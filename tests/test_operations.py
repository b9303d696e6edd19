"""
Tests for account, catalog, cart and checkout operations.
"""

import pytest

import operations
from errors import ValidationFailed

SHIPPING = {"name": "Jane Doe", "address": "1 Main St", "city": "Dubai", "zip": "00000"}
PAYMENT = {"cardNumber": "411111111111"}


def login_test_user(state):
    operations.login(state, "testuser@example.com", "test1234")


class TestRegister:
    def test_register_signs_in(self, state, storage):
        assert operations.register(state, "a@b.com", "pw12") is True

        assert state.current_user.username == "a@b.com"
        assert not state.current_user.is_admin
        assert storage.load("currentUser") == "a@b.com"
        assert storage.load("users")[-1] == {"username": "a@b.com", "password": "pw12", "isAdmin": False}

    @pytest.mark.parametrize("email,password", [("", "pw"), ("a@b.com", ""), ("not-an-email", "pw"), ("a@b", "pw")])
    def test_rejects_bad_input(self, state, email, password):
        with pytest.raises(ValidationFailed):
            operations.register(state, email, password)
        assert len(state.users) == 2
        assert state.current_user is None

    def test_rejects_duplicate(self, state):
        with pytest.raises(ValidationFailed, match="already exists"):
            operations.register(state, "admin@example.com", "x")

    def test_registration_keeps_guest_cart(self, state, storage):
        operations.add_to_cart(state, 1, 1)
        operations.register(state, "a@b.com", "pw12")

        assert storage.load("cart_guest") == [{"productId": 1, "quantity": 1}]
        assert state.get_cart() == []


class TestLogin:
    def test_login(self, state, storage):
        login_test_user(state)
        assert state.current_user.username == "testuser@example.com"
        assert storage.load("currentUser") == "testuser@example.com"

    @pytest.mark.parametrize("email,password,msg", [
        ("", "x", "enter email and password"),
        ("nobody@example.com", "x", "No account"),
        ("testuser@example.com", "wrong", "Incorrect password"),
    ])
    def test_failures(self, state, email, password, msg):
        with pytest.raises(ValidationFailed, match=msg):
            operations.login(state, email, password)
        assert state.current_user is None

    def test_guest_cart_moves_to_empty_user_cart(self, state, storage):
        storage.save("cart_guest", [{"productId": 1, "quantity": 2}])

        login_test_user(state)
        assert storage.load("cart_testuser@example.com") == [{"productId": 1, "quantity": 2}]
        assert storage.backend.get_item("cart_guest") is None

    def test_existing_user_cart_wins(self, state, storage):
        storage.save("cart_testuser@example.com", [{"productId": 3, "quantity": 1}])
        storage.save("cart_guest", [{"productId": 1, "quantity": 2}])

        login_test_user(state)
        assert storage.load("cart_testuser@example.com") == [{"productId": 3, "quantity": 1}]
        assert storage.backend.get_item("cart_guest") is None

    def test_empty_guest_cart_is_removed(self, state, storage):
        storage.save("cart_guest", [])
        login_test_user(state)
        assert storage.backend.get_item("cart_guest") is None
        assert storage.backend.get_item("cart_testuser@example.com") is None


class TestLogout:
    def test_logout(self, state, storage):
        login_test_user(state)
        assert operations.logout(state) is True
        assert state.current_user is None
        assert storage.backend.get_item("currentUser") is None

    def test_logout_as_guest_is_noop(self, state):
        assert operations.logout(state) is False


class TestProducts:
    def test_add_assigns_next_id(self, state, storage):
        product = operations.add_product(state, {"name": "Hat", "category": "Hats", "price": "12.5", "image": ""})

        assert product.id == 5
        assert product.price == 12.5
        assert product.image.startswith("https://via.placeholder.com")
        assert product.description == ""
        assert product.is_new is False
        assert storage.load("products")[-1]["id"] == 5

    def test_first_product_gets_id_one(self, state):
        state.products = []
        assert operations.add_product(state, {"name": "A", "category": "C", "price": 1, "image": "a.png"}).id == 1

    def test_ids_are_not_gap_filled(self, state):
        operations.delete_product(state, 2)
        assert operations.add_product(state, {"name": "A", "category": "C", "price": 1, "image": "a.png"}).id == 5

    def test_id_after_deleting_highest(self, state):
        operations.delete_product(state, 4)
        assert operations.add_product(state, {"name": "A", "category": "C", "price": 1, "image": "a.png"}).id == 4

    @pytest.mark.parametrize("data", [
        {"category": "C", "price": 1, "image": "a.png"},
        {"name": "A", "price": 1, "image": "a.png"},
        {"name": "A", "category": "C", "image": "a.png"},
        {"name": "A", "category": "C", "price": 1},
    ])
    def test_add_requires_fields(self, state, data):
        with pytest.raises(ValidationFailed, match="fill out all product fields"):
            operations.add_product(state, data)
        assert len(state.products) == 4

    @pytest.mark.parametrize("price", ["abc", "-1", "nan", -0.5])
    def test_add_rejects_bad_price(self, state, price):
        with pytest.raises(ValidationFailed, match="valid price"):
            operations.add_product(state, {"name": "A", "category": "C", "price": price, "image": "a.png"})

    def test_update_overwrites_supplied_fields(self, state, storage):
        assert operations.update_product(state, 3, {"name": "Gold Sandals", "price": "99", "isNew": True}) is True

        product = state.find_product(3)
        assert product.name == "Gold Sandals"
        assert product.price == 99
        assert product.category == "Shoes"
        assert product.is_new is True
        assert storage.load("products")[2]["name"] == "Gold Sandals"

    def test_update_always_overwrites_is_new(self, state):
        operations.update_product(state, 1, {"name": "Renamed"})
        assert state.find_product(1).is_new is False

    def test_update_unknown_id_fails_silently(self, state):
        assert operations.update_product(state, 99, {"name": "x"}) is False

    def test_update_bad_price_changes_nothing(self, state):
        with pytest.raises(ValidationFailed, match="Invalid price"):
            operations.update_product(state, 1, {"name": "x", "price": "-3", "isNew": False})
        product = state.find_product(1)
        assert product.name == "Rainbow Dress"
        assert product.is_new is True

    def test_delete(self, state, storage):
        assert operations.delete_product(state, 1) is True
        assert operations.delete_product(state, 1) is True
        assert [p["id"] for p in storage.load("products")] == [2, 3, 4]


class TestCart:
    def test_add_and_increment(self, state, storage):
        operations.add_to_cart(state, 1)
        operations.add_to_cart(state, 1, 3)
        operations.add_to_cart(state, 2, 2)

        assert storage.load("cart_guest") == [
            {"productId": 1, "quantity": 4},
            {"productId": 2, "quantity": 2},
        ]

    def test_add_unknown_product(self, state, storage):
        with pytest.raises(ValidationFailed, match="Product not found"):
            operations.add_to_cart(state, 42)
        assert storage.backend.get_item("cart_guest") is None

    def test_add_nonpositive_quantity(self, state):
        with pytest.raises(ValidationFailed):
            operations.add_to_cart(state, 1, 0)

    def test_cart_is_scoped_to_identity(self, state, storage):
        login_test_user(state)
        operations.add_to_cart(state, 2)
        assert storage.load("cart_testuser@example.com") == [{"productId": 2, "quantity": 1}]
        assert storage.backend.get_item("cart_guest") is None

    def test_set_quantity(self, state):
        operations.add_to_cart(state, 1, 2)
        assert operations.update_cart_quantity(state, 1, 5) is True
        assert state.get_cart()[0].quantity == 5

    def test_zero_quantity_removes_line(self, state):
        operations.add_to_cart(state, 1)
        operations.add_to_cart(state, 2)
        operations.update_cart_quantity(state, 1, 0)
        assert [c.product_id for c in state.get_cart()] == [2]

    def test_remove(self, state):
        operations.add_to_cart(state, 1)
        assert operations.remove_from_cart(state, 1) is True
        assert state.get_cart() == []

    def test_set_quantity_without_line_is_noop(self, state, storage):
        assert operations.update_cart_quantity(state, 1, 3) is False
        assert storage.backend.get_item("cart_guest") is None


class TestPlaceOrder:
    def test_seeded_user_checkout(self, state, storage):
        login_test_user(state)
        operations.add_to_cart(state, 3, 2)

        order = operations.place_order(state, SHIPPING, PAYMENT)

        assert order.id == 2
        assert order.user == "testuser@example.com"
        assert order.total == sum(i.price * i.quantity for i in order.items) == 160
        assert order.shipping.address == "1 Main St, Dubai, 00000"
        assert storage.backend.get_item("cart_testuser@example.com") is None
        assert storage.load("lastOrder") == order.id
        assert storage.load("orders")[-1]["total"] == 160

    def test_total_uses_snapshot(self, state):
        login_test_user(state)
        operations.add_to_cart(state, 1, 1)
        operations.add_to_cart(state, 4, 3)
        order = operations.place_order(state, SHIPPING, PAYMENT)

        operations.update_product(state, 1, {"price": 1})
        assert order.items[0].price == 90
        assert order.total == 90 + 60 * 3

    def test_missing_product_becomes_placeholder_line(self, state):
        login_test_user(state)
        operations.add_to_cart(state, 1, 2)
        operations.add_to_cart(state, 2, 1)
        operations.delete_product(state, 1)

        order = operations.place_order(state, SHIPPING, PAYMENT)
        unknown = order.items[0]
        assert (unknown.product_id, unknown.name, unknown.category, unknown.price) == (1, "Unknown Product", "", 0)
        assert order.total == 120

    def test_payment_is_not_stored(self, state, store):
        login_test_user(state)
        operations.add_to_cart(state, 1)
        operations.place_order(state, SHIPPING, PAYMENT)
        assert all(PAYMENT["cardNumber"] not in store.get_item(k) for k in store.keys())

    def test_guest_cannot_order(self, state):
        operations.add_to_cart(state, 1)
        with pytest.raises(ValidationFailed, match="logged in"):
            operations.place_order(state, SHIPPING, PAYMENT)

    @pytest.mark.parametrize("field", ["name", "address", "city", "zip"])
    def test_shipping_fields_required(self, state, field):
        login_test_user(state)
        operations.add_to_cart(state, 1)
        with pytest.raises(ValidationFailed, match="shipping and payment"):
            operations.place_order(state, {**SHIPPING, field: ""}, PAYMENT)
        assert len(state.orders) == 1

    def test_card_required(self, state):
        login_test_user(state)
        operations.add_to_cart(state, 1)
        with pytest.raises(ValidationFailed, match="shipping and payment"):
            operations.place_order(state, SHIPPING, {})

    def test_short_card(self, state, storage):
        login_test_user(state)
        operations.add_to_cart(state, 1)
        with pytest.raises(ValidationFailed, match="credit card"):
            operations.place_order(state, SHIPPING, {"cardNumber": "12345678901"})
        assert storage.backend.get_item("cart_testuser@example.com") is not None
        assert storage.backend.get_item("lastOrder") is None

    def test_empty_cart(self, state):
        login_test_user(state)
        with pytest.raises(ValidationFailed, match="cart is empty"):
            operations.place_order(state, SHIPPING, PAYMENT)


class TestSort:
    def test_set_sort(self, state):
        operations.set_sort(state, "name-desc")
        assert state.current_sort == "name-desc"

    def test_unknown_sort(self, state):
        with pytest.raises(ValidationFailed):
            operations.set_sort(state, "random")
        assert state.current_sort == "price-asc"
