"""
Script para poblar la base de datos con datos de ejemplo.
"""
import os
from core.config import settings
from core.database import SessionLocal
from core.security import hash_password
from models import User, Category, Product

def seed_data():
    db = SessionLocal()
    
    try:
        print("🌱 Poblando base de datos...")
        
        admin_email = os.getenv("ADMIN_EMAIL", "admin@tienda.com")
        if not db.query(User).filter(User.email == admin_email).first():
            db.add(User(
                email=admin_email,
                hashed_password=hash_password(os.getenv("ADMIN_PASSWORD", "Admin12345")),
                full_name="Administrador",
                role=settings.ADMIN_ROLE,
                is_active=True
            ))
            db.commit()
            print(f"✅ Administrador creado: {admin_email}")
        
        categories = [
            Category(name="Frutas y Verduras", description="Productos frescos de temporada"),
            Category(name="Panadería", description="Pan y repostería del día"),
            Category(name="Bebidas", description="Jugos, aguas y refrescos"),
        ]
        db.add_all(categories)
        db.commit()
        print("✅ Categorías creadas")
        
        products = [
            Product(name="Manzana Roja (kg)", description="Manzana roja nacional", price=45.50,
                    stock=120, category_id=categories[0].id, review_ids=[]),
            Product(name="Aguacate Hass (kg)", description="Aguacate de Michoacán", price=69.90,
                    stock=80, category_id=categories[0].id, review_ids=[]),
            Product(name="Pan de Caja Integral", description="Pan integral rebanado 680 g", price=52.00,
                    stock=40, category_id=categories[1].id, review_ids=[]),
            Product(name="Agua Natural 1.5 L", description="Agua purificada", price=14.00,
                    stock=200, category_id=categories[2].id, review_ids=[]),
        ]
        db.add_all(products)
        db.commit()
        print("✅ Productos creados")
        
        print("\n🎉 Base de datos poblada exitosamente!")
        
    except Exception as e:
        print(f"❌ Error: {e}")
        db.rollback()
        raise
    finally:
        db.close()

if __name__ == "__main__":
    seed_data()
