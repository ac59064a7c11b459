"""
Organization Authorization Service

Multi-tenant authorization core: organization scoping, role hierarchy,
resource ownership, invitations and membership management.
"""

from setuptools import setup, find_packages

setup(
    name="vebtask-authz",
    version="1.0.0",
    description="Multi-tenant organization authorization service",
    author="VebTask",
    packages=find_packages(exclude=["tests", "tests.*", "scripts"]),
    python_requires=">=3.11",
    install_requires=[
        # Web framework
        "fastapi>=0.104.0",
        "uvicorn[standard]>=0.24.0",

        # PostgreSQL support
        "sqlalchemy[asyncio]>=2.0.23",
        "asyncpg>=0.29.0",

        # Database migrations
        "alembic>=1.13.0",

        # Configuration and validation
        "pydantic[email]>=2.5.0",
        "pydantic-settings>=2.1.0",

        # Identity provider tokens
        "python-jose[cryptography]>=3.3.0",

        # Monitoring and observability
        "sentry-sdk[fastapi]>=1.39.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "pytest-asyncio>=0.21.0",
            "pytest-cov>=4.1.0",
            "httpx>=0.25.0",
            "aiosqlite>=0.19.0",
            "black>=23.10.0",
            "flake8>=6.1.0",
            "mypy>=1.7.0",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Programming Language :: Python :: 3.11",
        "License :: Other/Proprietary License",
    ],
)
