from setuptools import setup, find_namespace_packages

setup(
    name="reading_tracker",
    version="0.1.0",
    packages=find_namespace_packages(include=['api*', 'cli*', 'core*']),
    include_package_data=True,
    python_requires=">=3.11",
    install_requires=[
        "Click",
        "SQLAlchemy[asyncio]>=2.0",
        "aiosqlite",
        "aiohttp",
        "tenacity",
        "fastapi",
        "uvicorn",
        "pydantic>=2",
        "python-dotenv",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-asyncio",
            "httpx",
        ],
    },
    entry_points={
        "console_scripts": [
            "reading-tracker=cli.main:main",
        ],
    },
)
