import re


def makeregprefix(key):
    regstr = [".", "+", "*", "?", "|", "^", "$", "/", "<", ">"]
    for regkey in regstr:
        if key == regkey:
            return r"\{}".format(key)
    return key


COMMAND_PREFIX = "/"
COMMENT_PREFIX = "#"
MODIFIER_OPEN = "<"
MODIFIER_CLOSE = ">"
MODIFIER_SEPARATOR = "."

# <name> or <name.value>; the value may itself contain dots (<wait.1.5>)
MODIFIER_PATTERN = re.compile(
    makeregprefix(MODIFIER_OPEN)
    + r"(?P<name>[A-Za-z_]+)(?:" + re.escape(MODIFIER_SEPARATOR) + r"(?P<value>[^<>]*))?"
    + makeregprefix(MODIFIER_CLOSE)
)
