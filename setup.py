
from setuptools import setup, find_packages

setup(
    name="leaderhud",
    version="0.1.0",
    description="Contributor leaderboard aggregation and static JSON export",
    packages=find_packages(exclude=["tests", "tests.*"]),
    include_package_data=True,
    install_requires=[
        "typer>=0.9.0",
        "sqlalchemy>=2.0.0",
        "pydantic>=2.0.0",
        "python-dateutil>=2.8.2",
        "orjson>=3.8.0",
        "python-dotenv>=1.0.0",
        "PyYAML>=6.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "leaderhud=leaderhud.cli:app",
        ],
    },
    python_requires=">=3.10",
)
