from setuptools import setup

setup(
    name="genframe",
    version="0.0.0",
    description="Resumable generator objects driven by a small stack-machine interpreter",
    packages=["genframe", "genframe.interpreter"],
    install_requires=["dill"],
    extras_require={
        "test": ["pytest"],
    },
    python_requires=">=3.9",
)
