"""Tree-walking interpreter for the Lox scripting language.

Basic program flow:
    1. Scanner: turns source text into a flat list of tokens (see lox/core/scanner.py)
    2. Parser: builds statement/expression trees by recursive descent (see lox/core/parser.py)
        - syntax errors are reported and skipped, so every error in a file shows up in one run
    3. Resolver: walks the trees once and records how many scopes separate each variable use from its
       declaration (see lox/core/resolver.py)
    4. Interpreter: evaluates the trees directly, using the resolver's distances for variable lookup
       (see lox/core/interpreter.py)

The `core` package holds the pipeline itself, while the `lang` package holds everything around it: error
reporting, sessions, the interactive shell and the command-line driver.
"""
