"""Separator characters used in the query string grammar.

None of these may appear in a file path part, test path part or parameter
name. Serialized parameter values may not contain the parameter, key/value
or wildcard separators.
"""

# Separates the suite, file, test and params levels: suite:a,b:c,d:x=1
BIG_SEPARATOR = ":"

# Separates parts of a file or test path: a,b,c
PATH_SEPARATOR = ","

# Separates parameters within the params level: x=1;y=2
PARAM_SEPARATOR = ";"

# Separates a parameter name from its serialized value: x=1
PARAM_KV_SEPARATOR = "="

# Terminates a level that is left unspecified: suite:a,*
WILDCARD = "*"
