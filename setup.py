from setuptools import setup, find_packages


setup(
    name="sealed-env",
    version="0.1",
    packages=find_packages(),
    description="Keep encrypted values in plaintext .env files without disturbing their layout.",
    author="vercingetorx",
    install_requires=[
        "pycryptodomex>=3.23.0",
    ],
    entry_points={
        "console_scripts": [
            "sealed=sealed.cli:main",
        ]
    },
)
