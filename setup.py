from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="zkauth",
    version="0.1.0",
    author="Hany Almnaem",
    author_email="",
    description="Privacy-preserving identity commitments with Groth16 proofs of knowledge",
    long_description=long_description,
    long_description_content_type="text/markdown",
    url="https://github.com/Hany-Almnaem/zkauth",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Topic :: Security :: Cryptography",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3.13",
    ],
    python_requires=">=3.9",
    install_requires=[
        "trio>=0.27.0",
        "py_ecc>=7.0.0",
        "pycryptodome>=3.20.0",
        "fastapi>=0.110.0",
        "pydantic>=2.5.0",
        "hypercorn>=0.16.0",
        "loguru>=0.7.0",
        "click>=8.1.0",
        "rich>=13.0.0",
        "pyyaml>=6.0",
    ],
    extras_require={
        "dev": [
            "pytest>=8.0.0",
            "pytest-trio>=0.8.0",
            "httpx>=0.27.0",
            "black>=24.0.0",
            "flake8>=7.0.0",
            "mypy>=1.8.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "zkauth=zkauth.cli:main",
        ],
    },
)
