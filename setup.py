from pathlib import Path

from setuptools import setup

install_requires = []

setup(
    name='discord-richipc',
    use_scm_version={
        "version_scheme": "guess-next-dev",
        "local_scheme": "dirty-tag",
        "fallback_version": "0.1.0",
    },
    packages=['richipc', 'richipc.ipc', 'richipc.dataclasses'],
    license='LGPLv3',
    description='A blocking client for the Discord Rich Presence IPC',
    long_description=Path(__file__).with_name("README.rst").read_text(encoding="utf-8"),
    python_requires=">=3.8",
    classifiers=[
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3 :: Only",
        "Operating System :: POSIX",
        "Operating System :: Microsoft :: Windows",
        "Development Status :: 4 - Beta"
    ],
    install_requires=install_requires,
    extras_require={
        "tests": ["pytest>=7"],
        "docs": [
            "sphinx_py3doc_enhanced_theme",
            "sphinx",
            "sphinx-autodoc-typehints",
        ]
    },
)
