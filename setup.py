from codecs import open
from os import path

from setuptools import find_packages, setup

here = path.abspath(path.dirname(__file__))

with open(path.join(here, "README.md"), encoding="utf-8") as f:
    long_description = f.read()

setup(
    name="bundle-size",
    version="0.3.0",
    packages=find_packages(exclude=["contrib", "docs", "tests*"]),
    package_data={"bundle_size": ["py.typed"]},
    description="Bundle size accounting and comparison for Next.js builds",
    long_description=long_description,
    long_description_content_type="text/markdown",
    python_requires=">=3.11",
    install_requires=[
        "cerberus",
        "httpx>=0.23.0",
        "orjson",
        "prometheus-client",
        "pyyaml",
        "sentry-sdk>=2.13.0",
    ],
    extras_require={
        "tests": [
            "pytest",
            "pytest-asyncio",
            "pytest-mock",
            "respx",
        ],
    },
)
