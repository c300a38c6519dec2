"""Setup script for Overall."""
from setuptools import setup, find_packages

setup(
    name="overall",
    version="0.1.0",
    packages=find_packages(include=["overall", "overall.*"]),
    py_modules=["cli", "sync_cli"],
    install_requires=[
        "flask",
        "requests",
        "sqlalchemy>=2.0",
        "pydantic>=2",
        "python-dotenv",
        "pyyaml",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "overall=cli:main",
            "overall-sync=sync_cli:main",
        ],
    },
    python_requires=">=3.10",
)
