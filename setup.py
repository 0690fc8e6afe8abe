# setup.py
from setuptools import setup, find_packages

setup(
    name="pricing_monitor",
    version="0.1.0",
    description="Discovery and validation of pricing pages across a family of sites",
    packages=find_packages(exclude=("tests", "tests.*")),
    package_data={"pricing_monitor": ["templates/*.j2"]},
    install_requires=[
        "aiohttp>=3.9",
        "beautifulsoup4>=4.12",
        "lxml>=5.0",
        "pydantic>=2.5",
        "PyYAML>=6.0",
        "click>=8.1",
        "jinja2>=3.1",
        "playwright>=1.40",
        "pandas>=2.0",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
            "pytest-asyncio>=0.23",
        ],
    },
    entry_points={
        "console_scripts": [
            "pricing-monitor=pricing_monitor.cli:cli",
        ],
    },
    python_requires=">=3.11",
)
