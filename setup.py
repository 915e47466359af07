from setuptools import setup, find_packages

setup(
    name="nature-village-backend",
    version="0.1.0",
    packages=find_packages(include=["restaurant", "restaurant.*"]),
    python_requires=">=3.11",
    install_requires=[
        "fastapi>=0.110",
        "starlette",
        "uvicorn[standard]",
        "pydantic>=2.5",
        "pydantic-settings>=2.7",
        "sqlalchemy[asyncio]>=2.0",
        "aiosqlite",
        "asyncpg",
        "httpx>=0.27",
        "redis>=5.0",
    ],
    extras_require={
        "test": [
            "pytest>=8",
            "pytest-asyncio>=0.23",
        ],
    },
)
