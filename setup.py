"""
Setup script for the Replivity API
"""
from setuptools import setup, find_packages

setup(
    name="replivity",
    version="0.1.0",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    python_requires=">=3.10,<3.14",
    install_requires=[
        "fastapi>=0.110",
        "uvicorn[standard]>=0.27",
        "sqlalchemy>=2.0",
        "psycopg2-binary>=2.9",
        "pydantic[email]>=2.5",
        "python-jose[cryptography]>=3.3",
        "passlib>=1.7.4",
        "bcrypt>=4.0",
        "python-dotenv>=1.0",
        "python-multipart>=0.0.9",
        "litellm>=1.40",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
            "httpx>=0.27",
        ],
    },
)
