"""
Kestrel Parser

Pratt parser that produces an AST from any scanner's token stream.
Errors are collected on the parser rather than raised.
"""

from typing import Callable, Dict, List, Optional

from .ast import *
from .tokens import Precedence, Token, TokenType, get_precedence, kind_name

INT64_MAX = 2 ** 63 - 1

INFIX_OPERATORS = (
    TokenType.PLUS,
    TokenType.MINUS,
    TokenType.ASTERISK,
    TokenType.SLASH,
    TokenType.EQUALS,
    TokenType.NOT_EQUALS,
    TokenType.LT,
    TokenType.LESS_EQUAL,
    TokenType.GT,
    TokenType.GREATER_EQUAL,
    TokenType.AND,
    TokenType.OR,
)


class Parser:
    """Pratt parser for Kestrel."""

    def __init__(self, scanner):
        """
        Initialize the parser.

        Args:
            scanner: Any object with a next_token() method
        """
        self.scanner = scanner
        self.errors: List[str] = []

        self.prefix_parsers: Dict[TokenType, Callable[[], Optional[Expression]]] = {
            TokenType.IDENT: self.parse_identifier,
            TokenType.INT: self.parse_integer,
            TokenType.STRING: self.parse_string,
            TokenType.TRUE: self.parse_boolean,
            TokenType.FALSE: self.parse_boolean,
            TokenType.BANG: self.parse_prefix,
            TokenType.MINUS: self.parse_prefix,
            TokenType.LPAREN: self.parse_grouped,
            TokenType.IF: self.parse_if,
            TokenType.FUNCTION: self.parse_function,
            TokenType.LBRACKET: self.parse_array,
            TokenType.LBRACE: self.parse_map,
        }
        self.infix_parsers: Dict[TokenType, Callable[[Expression], Optional[Expression]]] = {
            op: self.parse_infix for op in INFIX_OPERATORS
        }
        self.infix_parsers[TokenType.LPAREN] = self.parse_call
        self.infix_parsers[TokenType.LBRACKET] = self.parse_index

        self.current: Token = scanner.next_token()
        self.peek: Token = scanner.next_token()

    def parse_program(self) -> Program:
        """
        Parse the token stream into an AST.

        Returns:
            Program AST node; check self.errors before using it
        """
        program = Program()

        while not self.current_is(TokenType.EOF):
            statement = self.parse_statement()
            if statement is not None:
                program.statements.append(statement)
            self.advance()

        return program

    # =========================================================================
    # Statements
    # =========================================================================

    def parse_statement(self) -> Optional[Statement]:
        if self.current_is(TokenType.LET):
            return self.parse_let()
        if self.current_is(TokenType.RETURN):
            return self.parse_return()
        return self.parse_expression_statement()

    def parse_let(self) -> Optional[LetStatement]:
        token = self.current

        if not self.expect_peek(TokenType.IDENT):
            return None
        name = Identifier(self.current.literal, self.current)

        if not self.expect_peek(TokenType.ASSIGN):
            return None
        self.advance()

        value = self.parse_expression(Precedence.LOWEST)
        if value is None:
            return None

        if self.peek_is(TokenType.SEMICOLON):
            self.advance()
        return LetStatement(name, value, token)

    def parse_return(self) -> Optional[ReturnStatement]:
        token = self.current

        if self.peek_is(TokenType.SEMICOLON):
            self.advance()
            return ReturnStatement(None, token)

        self.advance()
        value = self.parse_expression(Precedence.LOWEST)
        if value is None:
            return None

        if self.peek_is(TokenType.SEMICOLON):
            self.advance()
        return ReturnStatement(value, token)

    def parse_expression_statement(self) -> Optional[ExpressionStatement]:
        token = self.current
        expression = self.parse_expression(Precedence.LOWEST)
        if expression is None:
            return None

        if self.peek_is(TokenType.SEMICOLON):
            self.advance()
        return ExpressionStatement(expression, token)

    def parse_block(self) -> BlockStatement:
        block = BlockStatement(token=self.current)
        self.advance()

        while not self.current_is(TokenType.RBRACE):
            if self.current_is(TokenType.EOF):
                self.error("expected '}' before end of input")
                break
            statement = self.parse_statement()
            if statement is not None:
                block.statements.append(statement)
            self.advance()

        return block

    # =========================================================================
    # Expressions
    # =========================================================================

    def parse_expression(self, precedence: int) -> Optional[Expression]:
        prefix = self.prefix_parsers.get(self.current.type)
        if prefix is None:
            self.error(f"no prefix parse function for {kind_name(self.current.type)} found")
            return None

        left = prefix()
        while left is not None and not self.peek_is(TokenType.SEMICOLON) \
                and precedence < get_precedence(self.peek.type):
            infix = self.infix_parsers.get(self.peek.type)
            if infix is None:
                return left
            self.advance()
            left = infix(left)

        return left

    def parse_identifier(self) -> Expression:
        return Identifier(self.current.literal, self.current)

    def parse_integer(self) -> Optional[Expression]:
        literal = self.current.literal
        value = int(literal) if literal.isdigit() else None
        if value is None or value > INT64_MAX:
            self.error(f"could not parse {literal} as integer")
            return None
        return IntegerLiteral(value, self.current)

    def parse_string(self) -> Expression:
        literal = self.current.literal
        if len(literal) >= 2 and literal[0] == '"' and literal[-1] == '"':
            literal = literal[1:-1]
        return StringLiteral(literal, self.current)

    def parse_boolean(self) -> Expression:
        return BooleanLiteral(self.current_is(TokenType.TRUE), self.current)

    def parse_prefix(self) -> Optional[Expression]:
        token = self.current
        self.advance()
        right = self.parse_expression(Precedence.PREFIX)
        if right is None:
            return None
        return PrefixExpression(token.literal, right, token)

    def parse_infix(self, left: Expression) -> Optional[Expression]:
        token = self.current
        precedence = get_precedence(token.type)
        self.advance()
        right = self.parse_expression(precedence)
        if right is None:
            return None
        return InfixExpression(left, token.literal, right, token)

    def parse_grouped(self) -> Optional[Expression]:
        self.advance()
        expression = self.parse_expression(Precedence.LOWEST)
        if not self.expect_peek(TokenType.RPAREN):
            return None
        return expression

    def parse_if(self) -> Optional[Expression]:
        token = self.current

        if not self.expect_peek(TokenType.LPAREN):
            return None
        self.advance()
        condition = self.parse_expression(Precedence.LOWEST)
        if condition is None or not self.expect_peek(TokenType.RPAREN):
            return None

        if not self.expect_peek(TokenType.LBRACE):
            return None
        consequence = self.parse_block()

        alternative = None
        if self.peek_is(TokenType.ELSE):
            self.advance()
            if not self.expect_peek(TokenType.LBRACE):
                return None
            alternative = self.parse_block()

        return IfExpression(condition, consequence, alternative, token)

    def parse_function(self) -> Optional[Expression]:
        token = self.current

        if not self.expect_peek(TokenType.LPAREN):
            return None
        parameters = self.parse_parameters()
        if parameters is None or not self.expect_peek(TokenType.LBRACE):
            return None

        return FunctionLiteral(parameters, self.parse_block(), token)

    def parse_parameters(self) -> Optional[List[Identifier]]:
        parameters: List[Identifier] = []

        if self.peek_is(TokenType.RPAREN):
            self.advance()
            return parameters

        if not self.expect_peek(TokenType.IDENT):
            return None
        parameters.append(Identifier(self.current.literal, self.current))

        while self.peek_is(TokenType.COMMA):
            self.advance()
            if not self.expect_peek(TokenType.IDENT):
                return None
            parameters.append(Identifier(self.current.literal, self.current))

        if not self.expect_peek(TokenType.RPAREN):
            return None
        return parameters

    def parse_call(self, function: Expression) -> Optional[Expression]:
        token = self.current
        arguments = self.parse_expression_list(TokenType.RPAREN)
        if arguments is None:
            return None
        return CallExpression(function, arguments, token)

    def parse_array(self) -> Optional[Expression]:
        token = self.current
        elements = self.parse_expression_list(TokenType.RBRACKET)
        if elements is None:
            return None
        return ArrayLiteral(elements, token)

    def parse_index(self, left: Expression) -> Optional[Expression]:
        token = self.current
        self.advance()
        index = self.parse_expression(Precedence.LOWEST)
        if index is None or not self.expect_peek(TokenType.RBRACKET):
            return None
        return IndexExpression(left, index, token)

    def parse_map(self) -> Optional[Expression]:
        token = self.current
        pairs = []

        while not self.peek_is(TokenType.RBRACE):
            self.advance()
            key = self.parse_expression(Precedence.LOWEST)
            if key is None or not self.expect_peek(TokenType.COLON):
                return None

            self.advance()
            value = self.parse_expression(Precedence.LOWEST)
            if value is None:
                return None
            pairs.append((key, value))

            if not self.peek_is(TokenType.RBRACE) and not self.expect_peek(TokenType.COMMA):
                return None

        self.advance()
        return MapLiteral(pairs, token)

    def parse_expression_list(self, end: TokenType) -> Optional[List[Expression]]:
        """Comma-separated expressions up to the end token."""
        items: List[Expression] = []

        if self.peek_is(end):
            self.advance()
            return items

        self.advance()
        item = self.parse_expression(Precedence.LOWEST)
        if item is None:
            return None
        items.append(item)

        while self.peek_is(TokenType.COMMA):
            self.advance()
            self.advance()
            item = self.parse_expression(Precedence.LOWEST)
            if item is None:
                return None
            items.append(item)

        if not self.expect_peek(end):
            return None
        return items

    # =========================================================================
    # Helper Methods
    # =========================================================================

    def advance(self) -> None:
        self.current = self.peek
        self.peek = self.scanner.next_token()

    def current_is(self, token_type: TokenType) -> bool:
        return self.current.type == token_type

    def peek_is(self, token_type: TokenType) -> bool:
        return self.peek.type == token_type

    def expect_peek(self, token_type: TokenType) -> bool:
        """Advance if the next token has the given type, else record an error."""
        if self.peek_is(token_type):
            self.advance()
            return True
        self.error(f"expected next token to be {kind_name(token_type)}, "
                   f"got {kind_name(self.peek.type)} instead")
        return False

    def error(self, message: str) -> None:
        self.errors.append(message)
