from setuptools import setup, find_packages

setup(
    name="shop_insights",
    version="0.1.0",
    packages=find_packages(include=["shop_insights", "shop_insights.*"]),
    install_requires=[
        "fastapi>=0.109.2",
        "uvicorn>=0.27.1",
        "sqlalchemy[asyncio]>=2.0.27",
        "asyncpg>=0.29.0",
        "python-dotenv>=1.0.1",
        "pydantic>=2.6.1",
        "pydantic-settings>=2.1.0",
        "python-jose[cryptography]>=3.3.0",
        "cryptography>=42.0.0",
        "ShopifyAPI>=12.4.0",
        "httpx>=0.27.0",
        "celery[redis]>=5.3.6",
        "strawberry-graphql[fastapi]>=0.220.0",
    ],
    extras_require={
        "test": [
            "pytest>=8.0.0",
            "pytest-asyncio>=0.23.5",
            "aiosqlite>=0.20.0",
        ],
    },
)
