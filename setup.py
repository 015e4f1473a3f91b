# setup.py
from setuptools import setup, find_packages

setup(
    name="malisp",
    version="0.3.0",
    description="A mal-family Lisp interpreter with Common-Lisp-style packages",
    packages=find_packages(include=["malisp", "malisp.*", "malisp_lsp", "malisp_lsp.*"]),
    package_data={"malisp": ["prelude/*.lisp"]},
    python_requires=">=3.10",
    install_requires=[
        "pygls>=1.0,<2",
        "lsprotocol",
    ],
    extras_require={
        "test": ["pytest", "hypothesis"],
    },
    entry_points={
        "console_scripts": [
            "malisp=malisp.repl:main",
            "malisp-ls=malisp_lsp.server:main",
        ],
    },
    zip_safe=False,
)
