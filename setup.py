from setuptools import setup, find_packages

setup(
    name="english_auction",
    version="0.1.0",
    description="An event-sourced English auction engine",
    packages=find_packages(include=["english_auction", "english_auction.*"]),
    python_requires=">=3.8",
    install_requires=[
        "grpcio",
        "protobuf",
        "requests",
    ],
    extras_require={
        "test": [
            "pytest",
        ],
    },
    entry_points={
        "console_scripts": [
            "english-auction-node = english_auction.main:main"
        ]
    }
)
