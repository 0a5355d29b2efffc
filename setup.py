from setuptools import setup, find_packages

setup(
    name="blakley-share",
    version="1.0.0",
    description="Threshold secret sharing over GF(2^8) hyperplanes (Blakley's scheme), with AES-256-GCM sealed vaults.",
    long_description=open("README.md").read() if __import__("os").path.exists("README.md") else "",
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests"]),
    py_modules=["cli"],
    python_requires=">=3.8",
    install_requires=[
        "cryptography>=41.0.0",
    ],
    extras_require={
        "alt": ["pycryptodome>=3.19.0"],
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "blakley=cli:main",
        ],
    },
    classifiers=[
        "Development Status :: 5 - Production/Stable",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3.13",
        "Topic :: Security :: Cryptography",
    ],
    license="MIT",
)
