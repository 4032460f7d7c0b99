"""
Tests del servicio de carritos.
"""
import uuid

import pytest
from sqlalchemy.exc import IntegrityError

from core import cart_service
from core.errors import ForbiddenError, InsufficientStockError, NotFoundError, UnexpectedError, ValidationError
from core.identity import Identity
from models import Cart, CartItem


class TestResolveCartOwner:
    """Resolución del dueño del carrito"""

    def test_sin_user_id_usa_el_usuario_autenticado(self, customer_identity):
        assert cart_service.resolve_cart_owner(customer_identity) == customer_identity.id

    def test_cliente_no_puede_operar_carrito_ajeno(self, customer_identity, other_customer):
        with pytest.raises(ForbiddenError):
            cart_service.resolve_cart_owner(customer_identity, other_customer.id)

    def test_admin_puede_operar_carrito_ajeno(self, admin_identity, customer):
        assert cart_service.resolve_cart_owner(admin_identity, customer.id) == customer.id


class TestGetOrCreateCart:

    def test_crea_carrito_vacio(self, db, customer):
        cart, created = cart_service.get_or_create_cart(db, customer.id)
        assert created is True
        assert cart.user_id == customer.id
        assert cart.cart_items == []

    def test_devuelve_el_existente(self, db, customer, empty_cart):
        cart, created = cart_service.get_or_create_cart(db, customer.id)
        assert created is False
        assert cart.id == empty_cart.id
        assert db.query(Cart).filter(Cart.user_id == customer.id).count() == 1

    def test_indice_impide_dos_carritos_vivos(self, db, customer, empty_cart):
        db.add(Cart(user_id=customer.id))
        with pytest.raises(IntegrityError):
            db.commit()
        db.rollback()

    def test_permite_nuevo_carrito_si_el_anterior_esta_eliminado(self, db, customer, empty_cart):
        empty_cart.is_deleted = True
        db.commit()

        cart, created = cart_service.get_or_create_cart(db, customer.id)
        assert created is True
        assert cart.id != empty_cart.id

    def test_usuario_inexistente_es_404(self, db):
        with pytest.raises(NotFoundError) as exc:
            cart_service.get_or_create_cart(db, uuid.uuid4())
        assert exc.value.error_code == "USER_NOT_FOUND"
        assert db.query(Cart).count() == 0

    def test_integrity_error_sin_carrito_concurrente_es_500(self, db, customer, monkeypatch):
        def failing_commit():
            raise IntegrityError("INSERT INTO carts", {}, Exception("foreign key constraint failed"))

        monkeypatch.setattr(db, "commit", failing_commit)

        with pytest.raises(UnexpectedError):
            cart_service.get_or_create_cart(db, customer.id)

    def test_get_cart_sin_carrito_es_404(self, db, customer):
        with pytest.raises(NotFoundError):
            cart_service.get_cart(db, customer.id)

    def test_get_cart_ignora_carrito_eliminado(self, db, customer, empty_cart):
        empty_cart.is_deleted = True
        db.commit()
        with pytest.raises(NotFoundError):
            cart_service.get_cart(db, customer.id)


class TestAddItem:

    def test_agrega_producto_con_datos_del_producto(self, db, customer, empty_cart, make_product):
        product = make_product(name="Café", price="80.00", stock=5)

        cart = cart_service.add_item(db, customer.id, product.id, 2)

        assert len(cart.cart_items) == 1
        item = cart.cart_items[0]
        assert item.product_id == product.id
        assert item.quantity == 2
        assert item.product.name == "Café"
        assert item.product.stock == 5

    def test_readd_incrementa_sin_duplicar(self, db, customer, empty_cart, make_product):
        product = make_product(stock=5)

        cart_service.add_item(db, customer.id, product.id, 2)
        cart = cart_service.add_item(db, customer.id, product.id, 3)

        assert len(cart.cart_items) == 1
        assert cart.cart_items[0].quantity == 5
        assert db.query(CartItem).count() == 1

    def test_stock_se_valida_contra_el_incremento_no_el_acumulado(self, db, customer, empty_cart, make_product):
        product = make_product(stock=5)

        cart_service.add_item(db, customer.id, product.id, 2)
        cart_service.add_item(db, customer.id, product.id, 3)
        # 5 + 1 supera el stock, pero sólo se compara 1 contra 5
        cart = cart_service.add_item(db, customer.id, product.id, 1)

        assert cart.cart_items[0].quantity == 6

    def test_varios_productos_mantienen_lineas_unicas(self, db, customer, empty_cart, make_product):
        a = make_product(name="A", stock=10)
        b = make_product(name="B", stock=10)

        for product_id in (a.id, b.id, a.id, b.id, a.id):
            cart = cart_service.add_item(db, customer.id, product_id, 1)

        product_ids = [item.product_id for item in cart.cart_items]
        assert sorted(product_ids) == sorted({a.id, b.id})
        quantities = {item.product_id: item.quantity for item in cart.cart_items}
        assert quantities == {a.id: 3, b.id: 2}

    @pytest.mark.parametrize("quantity", [0, -1, "abc", None, 1.5, True, "", "0"])
    def test_cantidad_invalida_no_modifica_el_carrito(self, db, customer, empty_cart, make_product, quantity):
        product = make_product(stock=5)
        cart_service.add_item(db, customer.id, product.id, 1)

        with pytest.raises(ValidationError):
            cart_service.add_item(db, customer.id, product.id, quantity)

        cart = cart_service.get_cart(db, customer.id)
        assert [(i.product_id, i.quantity) for i in cart.cart_items] == [(product.id, 1)]

    def test_cantidad_numerica_en_texto_es_valida(self, db, customer, empty_cart, make_product):
        product = make_product(stock=5)
        cart = cart_service.add_item(db, customer.id, product.id, "3")
        assert cart.cart_items[0].quantity == 3

    def test_stock_insuficiente(self, db, customer, empty_cart, make_product):
        product = make_product(stock=2)
        with pytest.raises(InsufficientStockError):
            cart_service.add_item(db, customer.id, product.id, 3)
        assert cart_service.get_cart(db, customer.id).cart_items == []

    def test_producto_eliminado_es_404(self, db, customer, empty_cart, make_product):
        product = make_product()
        product.is_deleted = True
        db.commit()

        with pytest.raises(NotFoundError) as exc:
            cart_service.add_item(db, customer.id, product.id, 1)
        assert exc.value.error_code == "PRODUCT_NOT_FOUND"

    def test_sin_carrito_es_404(self, db, customer, make_product):
        product = make_product()
        with pytest.raises(NotFoundError) as exc:
            cart_service.add_item(db, customer.id, product.id, 1)
        assert exc.value.error_code == "CART_NOT_FOUND"


class TestSetQuantityAndRemove:

    def test_fija_cantidad(self, db, customer, empty_cart, make_product):
        product = make_product(stock=10)
        cart_service.add_item(db, customer.id, product.id, 1)

        cart = cart_service.set_item_quantity(db, customer.id, product.id, 7)
        assert cart.cart_items[0].quantity == 7

    def test_fijar_cantidad_de_producto_ausente_es_404(self, db, customer, empty_cart, make_product):
        product = make_product()
        with pytest.raises(NotFoundError) as exc:
            cart_service.set_item_quantity(db, customer.id, product.id, 2)
        assert exc.value.error_code == "ITEM_NOT_FOUND"

    def test_fijar_cantidad_cero_es_invalido(self, db, customer, empty_cart, make_product):
        product = make_product()
        cart_service.add_item(db, customer.id, product.id, 1)
        with pytest.raises(ValidationError):
            cart_service.set_item_quantity(db, customer.id, product.id, 0)

    def test_quitar_producto(self, db, customer, empty_cart, make_product):
        a = make_product(name="A")
        b = make_product(name="B")
        cart_service.add_item(db, customer.id, a.id, 1)
        cart_service.add_item(db, customer.id, b.id, 1)

        cart = cart_service.remove_item(db, customer.id, a.id)
        assert [item.product_id for item in cart.cart_items] == [b.id]

    def test_quitar_producto_ausente_no_falla(self, db, customer, empty_cart):
        cart = cart_service.remove_item(db, customer.id, 999)
        assert cart.cart_items == []

    def test_quitar_sin_carrito_es_404(self, db, customer):
        with pytest.raises(NotFoundError):
            cart_service.remove_item(db, customer.id, 1)

    def test_vaciar(self, db, customer, empty_cart, make_product):
        product = make_product()
        cart_service.add_item(db, customer.id, product.id, 2)

        cart = cart_service.clear_cart(db, customer.id)
        assert cart.cart_items == []
        assert cart.is_deleted is False

    def test_vaciar_sin_carrito_es_404(self, db):
        with pytest.raises(NotFoundError):
            cart_service.clear_cart(db, uuid.uuid4())


class TestComputeTotals:

    def test_total_con_precio_actual(self, db, customer, empty_cart, make_product):
        a = make_product(name="A", price="10.50", stock=10)
        b = make_product(name="B", price="3.00", stock=10)
        cart_service.add_item(db, customer.id, a.id, 2)
        cart_service.add_item(db, customer.id, b.id, 3)

        a.price = 12
        db.commit()

        totals = cart_service.compute_totals(db, customer.id)
        assert totals["total"] == 33.0
        assert totals["items"] == [
            {"product_id": a.id, "product_name": "A", "quantity": 2, "subtotal": 24.0},
            {"product_id": b.id, "product_name": "B", "quantity": 3, "subtotal": 9.0},
        ]

    def test_carrito_vacio_total_cero(self, db, customer, empty_cart):
        assert cart_service.compute_totals(db, customer.id) == {"total": 0.0, "items": []}

    def test_sin_carrito_es_404(self, db, customer):
        with pytest.raises(NotFoundError):
            cart_service.compute_totals(db, customer.id)

    def test_excluye_productos_eliminados(self, db, customer, empty_cart, make_product):
        a = make_product(name="A", price="5.00")
        b = make_product(name="B", price="7.00")
        cart_service.add_item(db, customer.id, a.id, 1)
        cart_service.add_item(db, customer.id, b.id, 1)
        b.is_deleted = True
        db.commit()

        totals = cart_service.compute_totals(db, customer.id)
        assert totals["total"] == 5.0
        assert [item["product_name"] for item in totals["items"]] == ["A"]

    def test_vista_del_carrito_coincide_con_el_total(self, db, customer, empty_cart, make_product):
        a = make_product(name="A", price="5.00")
        b = make_product(name="B", price="7.00")
        cart_service.add_item(db, customer.id, a.id, 1)
        cart_service.add_item(db, customer.id, b.id, 2)
        b.is_deleted = True
        db.commit()

        cart = cart_service.get_cart(db, customer.id)
        totals = cart_service.compute_totals(db, customer.id)

        assert [item.product_id for item in cart.live_items] == [a.id]
        assert [item["product_id"] for item in totals["items"]] == [a.id]


class TestValidateQuantity:

    @pytest.mark.parametrize("value, expected", [(1, 1), ("4", 4), (2.0, 2), (" 5 ", 5)])
    def test_valores_validos(self, value, expected):
        assert cart_service.validate_quantity(value) == expected

    @pytest.mark.parametrize("value", [0, -3, "x", None, False, 0.5, "nan", "inf", [1]])
    def test_valores_invalidos(self, value):
        with pytest.raises(ValidationError):
            cart_service.validate_quantity(value)


def test_identity_is_admin():
    assert Identity(id=uuid.uuid4(), role="administrador").is_admin
    assert not Identity(id=uuid.uuid4(), role="cliente").is_admin
