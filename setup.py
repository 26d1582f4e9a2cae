from setuptools import setup

setup(
    name="xhtml-negotiator",
    version="1.0.0",
    description="HTML4 / XHTML content negotiation for rendered pages",
    packages=["src"],
    py_modules=["main"],
    python_requires=">=3.10",
    install_requires=[
        "flask>=3.0.0",
        "tomli>=2.0.0; python_version < '3.11'",
    ],
    extras_require={
        "dev": [
            "pytest>=7.4.3",
            "hypothesis>=6.92.1",
        ],
    },
)
