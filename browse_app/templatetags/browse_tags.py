from django import template

from ..helpers import signature_time, split_message


register = template.Library()


@register.filter
def authored(commit):
    return signature_time(commit.author)


@register.filter
def summary(commit):
    return split_message(commit.message)[0]
