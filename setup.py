from setuptools import setup, find_packages

setup(
    name="csp-bypass-checker",
    version="0.1.0",
    description="Check Content-Security-Policy allow-lists against known CSP bypasses",
    author="debarshi17",
    author_email="your-email@example.com",
    url="https://github.com/debarshi17/csp-bypass-checker",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    install_requires=[
        "requests>=2.31.0",
        "beautifulsoup4>=4.12.2",
        "fastapi>=0.109.0",
        "uvicorn>=0.27.0",
        "tqdm>=4.66.1",
        "colorama>=0.4.6",
        "python-dotenv>=1.0.0",
        "jinja2>=3.1.2",
    ],
    extras_require={
        "test": [
            "pytest>=7.4.0",
            "httpx>=0.25.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "cspbypass=cspbypass.checker:main",
        ],
    },
    python_requires=">=3.9",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Topic :: Security",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3.9",
    ],
)
