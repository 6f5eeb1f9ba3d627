# apps/core/forms.py

from django import forms

from .models import Member, Project, Status, hex_color_validator

INPUT_CLASS = 'form-input w-full px-4 py-2 border rounded-lg'

# Colours offered when creating or editing a state
COLOR_PRESETS = [
    ('#3B82F6', 'Blue'),
    ('#10B981', 'Green'),
    ('#EF4444', 'Red'),
    ('#F59E0B', 'Amber'),
    ('#8B5CF6', 'Purple'),
    ('#EC4899', 'Pink'),
    ('#F97316', 'Orange'),
    ('#06B6D4', 'Cyan'),
    ('#6B7280', 'Gray'),
    ('#059669', 'Emerald'),
    ('#7C3AED', 'Violet'),
    ('#A16207', 'Brown'),
]

DEFAULT_STATUS_COLOR = '#3B82F6'


class LoginForm(forms.Form):
    """Password sign-in form"""

    email = forms.CharField(
        label='Email',
        max_length=254,
        widget=forms.TextInput(attrs={
            'class': INPUT_CLASS,
            'placeholder': 'you@example.com',
            'autofocus': True
        })
    )

    password = forms.CharField(
        label='Password',
        widget=forms.PasswordInput(attrs={
            'class': INPUT_CLASS,
            'placeholder': 'Your password'
        })
    )

    remember_me = forms.BooleanField(
        label='Remember me',
        required=False,
        widget=forms.CheckboxInput(attrs={
            'class': 'form-checkbox h-4 w-4 text-blue-600'
        })
    )


class MemberForm(forms.ModelForm):
    """Profile form on the my page"""

    class Meta:
        model = Member
        fields = ['name', 'nickname']
        widgets = {
            'name': forms.TextInput(attrs={
                'class': INPUT_CLASS,
                'placeholder': 'Your name'
            }),
            'nickname': forms.TextInput(attrs={
                'class': INPUT_CLASS,
                'placeholder': 'Nickname (optional)'
            }),
        }

    def clean_name(self):
        name = self.cleaned_data.get('name', '').strip()
        if not name:
            raise forms.ValidationError('Name is required.')
        return name

    def clean_nickname(self):
        return (self.cleaned_data.get('nickname') or '').strip() or None


class ProjectForm(forms.ModelForm):

    class Meta:
        model = Project
        fields = ['project_name']
        widgets = {
            'project_name': forms.TextInput(attrs={
                'class': INPUT_CLASS,
                'placeholder': 'Project name'
            }),
        }

    def clean_project_name(self):
        name = self.cleaned_data.get('project_name', '').strip()
        if not name:
            raise forms.ValidationError('Project name is required.')
        return name


class StatusForm(forms.ModelForm):
    """Name and colour of a state. Ordering is handled by the view"""

    status_color = forms.CharField(
        required=False,
        max_length=7,
        validators=[hex_color_validator],
        widget=forms.TextInput(attrs={'type': 'color', 'class': 'h-10 w-16'})
    )

    class Meta:
        model = Status
        fields = ['status_name', 'status_color']
        widgets = {
            'status_name': forms.TextInput(attrs={
                'class': INPUT_CLASS,
                'placeholder': 'State name'
            }),
        }

    def clean_status_name(self):
        name = self.cleaned_data.get('status_name', '').strip()
        if not name:
            raise forms.ValidationError('State name is required.')
        return name

    def clean_status_color(self):
        return self.cleaned_data.get('status_color') or DEFAULT_STATUS_COLOR
