"""Setup configuration for the catalog-inventory-services project."""

from setuptools import setup, find_packages

setup(
    name="catalog-inventory-services",
    version="1.0.0",
    description="Product catalog and inventory microservices linked by Kafka events",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.11",
    install_requires=[
        "fastapi>=0.109.0",
        "uvicorn>=0.27.0",
        "redis>=5.0.0",
        "confluent-kafka>=2.3.0",
        "sqlalchemy>=2.0.23",
        "psycopg2-binary>=2.9.9",
        "pydantic>=2.5.0",
        "pydantic-settings>=2.1.0",
        "pymongo>=4.6.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
            "httpx>=0.25",
            "fakeredis>=2.20",
            "mongomock>=4.1",
        ],
    },
)
