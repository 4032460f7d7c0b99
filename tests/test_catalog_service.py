"""
Tests del catálogo: categorías, productos y estadísticas.
"""
import pytest

from core import catalog_service
from core.errors import NotFoundError, ValidationError


class TestCategories:

    def test_crear_y_listar_por_nombre(self, db):
        catalog_service.create_category(db, {"name": "Tés"})
        catalog_service.create_category(db, {"name": "Aceites", "description": "Esenciales"})

        names = [c.name for c in catalog_service.list_categories(db)]
        assert names == ["Aceites", "Tés"]

    def test_nombre_duplicado(self, db, make_category):
        make_category("Miel")
        with pytest.raises(ValidationError) as exc:
            catalog_service.create_category(db, {"name": "Miel"})
        assert exc.value.error_code == "DUPLICATE_CATEGORY"

    def test_nombre_de_categoria_eliminada_se_puede_reusar(self, db, make_category):
        old = make_category("Temporada")
        catalog_service.delete_category(db, old.id)

        new = catalog_service.create_category(db, {"name": "Temporada"})

        assert new.id != old.id
        assert [c.id for c in catalog_service.list_categories(db)] == [new.id]
        with pytest.raises(ValidationError):
            catalog_service.create_category(db, {"name": "Temporada"})

    def test_actualizar(self, db, make_category):
        category = make_category("Jabones")
        updated = catalog_service.update_category(db, category.id, {"description": "Artesanales"})
        assert updated.name == "Jabones"
        assert updated.description == "Artesanales"

    def test_eliminada_no_se_lista_ni_se_obtiene(self, db, make_category):
        category = make_category("Temporal")
        catalog_service.delete_category(db, category.id)

        assert catalog_service.list_categories(db) == []
        with pytest.raises(NotFoundError) as exc:
            catalog_service.get_category(db, category.id)
        assert exc.value.error_code == "CATEGORY_NOT_FOUND"

    def test_estadisticas_cuentan_productos_vivos(self, db, make_category, make_product):
        tes = make_category("Tés")
        miel = make_category("Miel")
        make_category("Vacía")
        make_product(name="Manzanilla", category_id=tes.id)
        make_product(name="Menta", category_id=tes.id)
        make_product(name="Abeja", category_id=miel.id)
        gone = make_product(name="Vieja", category_id=miel.id)
        catalog_service.delete_product(db, gone.id)

        assert catalog_service.category_statistics(db) == [
            {"category_id": tes.id, "name": "Tés", "total_products": 2},
            {"category_id": miel.id, "name": "Miel", "total_products": 1},
            {"category_id": catalog_service.list_categories(db)[-1].id, "name": "Vacía", "total_products": 0},
        ]


class TestProducts:

    def test_crear_con_categoria_inexistente(self, db):
        with pytest.raises(NotFoundError):
            catalog_service.create_product(db, {"name": "X", "price": 1, "category_id": 99})

    def test_crear_inicia_sin_reseñas(self, db, make_category):
        category = make_category()
        product = catalog_service.create_product(db, {
            "name": "Shampoo",
            "price": 55.5,
            "stock": 4,
            "category_id": category.id
        })
        assert product.review_ids == []
        assert product.review_count == 0
        assert product.average_rating == 0
        assert product.stock == 4

    def test_filtros(self, db, make_category, make_product):
        category = make_category()
        make_product(name="Té verde", price="20.00", stock=0, category_id=category.id)
        make_product(name="Té negro", price="35.00", stock=3)
        make_product(name="Jabón", price="50.00", stock=1, category_id=category.id)

        def names(**filters):
            return [p.name for p in catalog_service.list_products(db, **filters)]

        assert names() == ["Jabón", "Té negro", "Té verde"]
        assert names(category_id=category.id) == ["Jabón", "Té verde"]
        assert names(min_price=30, max_price=40) == ["Té negro"]
        assert names(search="té") == ["Té negro", "Té verde"]
        assert names(in_stock=True) == ["Jabón", "Té negro"]
        assert names(in_stock=False) == ["Té verde"]

    def test_actualizar_no_toca_campos_de_reseñas(self, db, make_product):
        product = make_product(price="10.00")
        updated = catalog_service.update_product(db, product.id, {
            "price": 12,
            "average_rating": 5,
            "review_count": 100
        })
        assert float(updated.price) == 12.0
        assert updated.review_count == 0

    def test_eliminado_es_404(self, db, make_product):
        product = make_product()
        catalog_service.delete_product(db, product.id)

        with pytest.raises(NotFoundError):
            catalog_service.get_product(db, product.id)
        with pytest.raises(NotFoundError):
            catalog_service.update_product(db, product.id, {"name": "Otro"})
        assert catalog_service.list_products(db) == []

    def test_fijar_stock(self, db, make_product):
        product = make_product(stock=3)
        assert catalog_service.set_stock(db, product.id, 0).stock == 0
        with pytest.raises(ValidationError):
            catalog_service.set_stock(db, product.id, -1)

    def test_top_sólo_incluye_productos_con_reseñas(self, db, make_product):
        low = make_product(name="Bajo")
        high = make_product(name="Alto")
        make_product(name="Sin reseñas")
        low.average_rating, low.review_count = 3.0, 4
        high.average_rating, high.review_count = 4.5, 2
        db.commit()

        assert [p.name for p in catalog_service.top_products(db)] == ["Alto", "Bajo"]
        assert [p.name for p in catalog_service.top_products(db, limit=1)] == ["Alto"]
