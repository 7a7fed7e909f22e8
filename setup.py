from setuptools import setup, find_packages

setup(
    name="gradvol",
    version="0.1.0",
    description="Black-Scholes implied volatility calibration by gradient descent",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.10",
    install_requires=[
        "numpy>=1.24",
        "pandas>=2.0",
        "torch>=2.0",
    ],
    extras_require={
        "dev": ["pytest>=7.0", "scipy>=1.11", "black", "flake8"],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Topic :: Office/Business :: Financial",
        "Topic :: Scientific/Engineering",
    ],
)
