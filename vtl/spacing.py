"""
Удаление пробелов перед #set.

Эталонный движок съедает пробельный текст перед #set в зависимости от того,
что стоит перед этим текстом:

- перед пробелами ссылка: удаляются только горизонтальные пробелы
  (без перевода строки);
- перед пробелами комментарий или другая директива: удаляются любые
  пробелы, включая переводы строк;
- пробелы в самом начале последовательности: удаляются только
  горизонтальные.

Отдельно в начале тела макроса удаляется один узел из одних пробелов,
если сразу за ним идёт #set.
"""

from __future__ import annotations

from typing import List, Sequence

from .directives import DirectiveNode, SetNode
from .nodes import CommentNode, Node
from .references import ReferenceNode


def should_remove_last_node_before_set(nodes: Sequence[Node]) -> bool:
    """
    Нужно ли заменить последний узел последовательности добавляемым #set.

    Args:
        nodes: Уже разобранные соседние узлы, к которым добавляется #set
    """
    if not nodes:
        return False
    space = nodes[-1]
    if len(nodes) == 1:
        return space.is_horizontal_whitespace()
    before_space = nodes[-2]
    if isinstance(before_space, ReferenceNode):
        return space.is_horizontal_whitespace()
    if isinstance(before_space, (CommentNode, DirectiveNode)):
        return space.is_whitespace()
    return False


def remove_initial_space_before_set(nodes: Sequence[Node]) -> List[Node]:
    """Убирает ведущий пробельный узел тела макроса, если за ним идёт #set."""
    if len(nodes) >= 2 and nodes[0].is_whitespace() and isinstance(nodes[1], SetNode):
        return list(nodes[1:])
    return list(nodes)


__all__ = ["should_remove_last_node_before_set", "remove_initial_space_before_set"]
