"""Setup script for the article fact checker package"""

from pathlib import Path
from setuptools import find_packages, setup

readme_path = Path(__file__).parent / "README.md"
long_description = readme_path.read_text(encoding="utf-8") if readme_path.exists() else ""

setup(
    name="article-fact-checker",
    version="0.1.0",
    description="Verify the numbers and quotes of generated news articles against their source",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="article-fact-checker",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.10",
    install_requires=[
        "click>=8.0.0",
        "pydantic>=2.0.0",
        "PyYAML>=6.0",
        "Flask>=2.2.0",
    ],
    extras_require={
        "llm": ["openai>=1.0.0"],
        "test": ["pytest>=7.0.0", "pytest-asyncio>=0.21.0"],
    },
    entry_points={
        "console_scripts": [
            "article-fact-checker=article_fact_checker.cli:main",
        ]
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
)
