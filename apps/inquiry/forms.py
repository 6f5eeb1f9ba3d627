# apps/inquiry/forms.py

import re

from django import forms

from .models import Inquiry

INPUT_CLASS = 'form-input w-full px-4 py-2 border rounded-lg'
EMAIL_PATTERN = re.compile(r'\S+@\S+\.\S+')

MESSAGE_MIN_LENGTH = 10
MESSAGE_MAX_LENGTH = 500


class InquiryForm(forms.Form):
    """Contact form"""

    name = forms.CharField(
        label='Name',
        max_length=150,
        error_messages={'required': 'Name is required.'},
        widget=forms.TextInput(attrs={'class': INPUT_CLASS, 'placeholder': 'Your name'})
    )

    email = forms.CharField(
        label='Email',
        max_length=254,
        error_messages={'required': 'Email is required.'},
        widget=forms.TextInput(attrs={'class': INPUT_CLASS, 'placeholder': 'you@example.com'})
    )

    category = forms.ChoiceField(
        label='Category',
        choices=Inquiry.CATEGORY_CHOICES,
        initial='general',
        error_messages={'invalid_choice': 'Select a valid category.'},
        widget=forms.Select(attrs={'class': INPUT_CLASS})
    )

    subject = forms.CharField(
        label='Subject',
        max_length=200,
        error_messages={'required': 'Subject is required.'},
        widget=forms.TextInput(attrs={'class': INPUT_CLASS, 'placeholder': 'Subject'})
    )

    message = forms.CharField(
        label='Message',
        error_messages={'required': 'Message is required.'},
        widget=forms.Textarea(attrs={
            'class': INPUT_CLASS,
            'rows': 6,
            'maxlength': MESSAGE_MAX_LENGTH,
            'placeholder': f'{MESSAGE_MIN_LENGTH} to {MESSAGE_MAX_LENGTH} characters'
        })
    )

    def clean_email(self):
        email = self.cleaned_data['email']
        if not EMAIL_PATTERN.search(email):
            raise forms.ValidationError('Enter a valid email address.')
        return email

    def clean_message(self):
        message = self.cleaned_data['message']
        if len(message) < MESSAGE_MIN_LENGTH:
            raise forms.ValidationError(f'Message must be at least {MESSAGE_MIN_LENGTH} characters.')
        if len(message) > MESSAGE_MAX_LENGTH:
            raise forms.ValidationError(f'Message must be at most {MESSAGE_MAX_LENGTH} characters.')
        return message
