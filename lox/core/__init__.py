"""Scanner, parser, resolver and interpreter for Lox, plus the runtime objects they work with."""
