"""Setup configuration for the Dispatchcord bot framework."""

from setuptools import setup, find_packages

setup(
    name="dispatchcord",
    version="0.1.0",
    description="Message-driven command dispatch and pattern listeners for Discord bots",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.11",
    install_requires=[
        "py-cord>=2.4",
        "PyYAML>=6.0",
        "python-dotenv>=1.0",
        "prompt_toolkit>=3.0",
        "pydantic>=2.5",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
            "pytest-asyncio>=0.23",
        ],
    },
    entry_points={
        "console_scripts": [
            "dispatchcord=dispatchcord.main:main",
        ],
    },
)
