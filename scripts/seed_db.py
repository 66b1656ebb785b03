#!/usr/bin/env python
"""
Database seeding script
Creates the default plans and assigns each product its tier's feature set
"""
import sys
from decimal import Decimal
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from replivity.db import SessionLocal, init_db, Product, FeaturePermission
from replivity.services.feature_permissions_service import default_features_for_product

DEFAULT_PRODUCTS = [
    {
        "name": "Free",
        "description": "Try Replivity with the browser extension",
        "price": Decimal("0"),
        "limit": 25,
        "is_free": True,
        "marketing_taglines": ["25 replies per month", "Browser extension"],
    },
    {
        "name": "Basic",
        "description": "For creators who reply every day",
        "price": Decimal("9.99"),
        "limit": 500,
        "marketing_taglines": ["500 replies per month", "AI caption generator"],
    },
    {
        "name": "Pro",
        "description": "Every tool, for growing accounts and teams",
        "price": Decimal("29.99"),
        "limit": 5000,
        "marketing_taglines": ["5000 replies per month", "Tweet generator", "Bio optimizer"],
    },
]


def seed_products(db):
    existing = db.query(Product).count()
    if existing > 0:
        print(f"⚠️  Database already contains {existing} products. Skipping product seed.")
        return

    for fields in DEFAULT_PRODUCTS:
        db.add(Product(type="subscription", mode="monthly", status="active", **fields))
    db.commit()
    print(f"✓ Created {len(DEFAULT_PRODUCTS)} products")


def seed_feature_permissions(db):
    """Replace every product's permissions with its tier defaults"""
    products = db.query(Product).all()
    print(f"Found {len(products)} products")

    db.query(FeaturePermission).delete(synchronize_session=False)
    print("Cleared existing feature permissions")

    for product in products:
        features = default_features_for_product(product)
        for feature_key in features:
            db.add(FeaturePermission(product_id=product.id, feature_key=feature_key, enabled=True))
        print(f"  {product.name}: {', '.join(features)}")

    db.commit()
    print(f"✓ Total feature permissions created: {db.query(FeaturePermission).count()}")


def seed_database():
    """Seed database with initial data"""
    init_db()
    db = SessionLocal()

    try:
        print("Seeding database with initial data...")
        seed_products(db)
        seed_feature_permissions(db)
        print("✓ Database seeded successfully!")
    except Exception as e:
        print(f"❌ Error seeding database: {e}", file=sys.stderr)
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    seed_database()
