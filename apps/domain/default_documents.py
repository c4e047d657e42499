"""Bundled legal documents required for SmartStart onboarding.

Used to seed the document store and as the acceptance engine's offline
fallback set. Order matters: it is the order users are asked to sign in.
"""

DEFAULT_DOCUMENT_VERSION = '1.0'

DEFAULT_LEGAL_DOCUMENTS = [
    {
        'code': 'terms',
        'title': 'Terms of Service',
        'content': """# Terms of Service

## 1. Acceptance of Terms
By accessing and using SmartStart Platform, you accept and agree to be bound by the terms and provision of this agreement.

## 2. Use License
Permission is granted to temporarily use SmartStart Platform for personal, non-commercial transitory viewing only.

## 3. Disclaimer
The materials on SmartStart Platform are provided on an 'as is' basis. SmartStart makes no warranties, expressed or implied.

## 4. Limitations
In no event shall SmartStart or its suppliers be liable for any damages arising out of the use or inability to use the materials on SmartStart Platform.

## 5. Revisions
SmartStart may revise these terms of service at any time without notice.""",
    },
    {
        'code': 'privacy',
        'title': 'Privacy Policy',
        'content': """# Privacy Policy

## 1. Information We Collect
We collect information you provide directly to us, such as when you create an account, use our services, or contact us for support.

## 2. How We Use Your Information
We use the information we collect to provide, maintain, and improve our services, process transactions, and communicate with you.

## 3. Information Sharing
We do not sell, trade, or otherwise transfer your personal information to third parties without your consent.

## 4. Data Security
We implement appropriate security measures to protect your personal information against unauthorized access, alteration, disclosure, or destruction.

## 5. Your Rights
You have the right to access, update, or delete your personal information at any time.""",
    },
    {
        'code': 'nda',
        'title': 'Non-Disclosure Agreement',
        'content': """# Non-Disclosure Agreement

## 1. Confidential Information
The parties acknowledge that they may have access to confidential and proprietary information belonging to the other party.

## 2. Non-Disclosure Obligations
Each party agrees to hold in strict confidence all confidential information and not to disclose it to any third party without prior written consent.

## 3. Permitted Disclosures
The receiving party may disclose confidential information if required by law or court order.

## 4. Return of Information
Upon termination of this agreement, each party shall return or destroy all confidential information.

## 5. Term
This agreement shall remain in effect for a period of five (5) years from the date of execution.""",
    },
    {
        'code': 'contributor',
        'title': 'Contributor Agreement',
        'content': """# Contributor Agreement

## 1. Contribution License
By contributing to SmartStart Platform, you grant us a perpetual, worldwide, non-exclusive, royalty-free license to use, modify, and distribute your contributions.

## 2. Original Work
You represent that your contributions are your original work and do not infringe on any third-party rights.

## 3. Code of Conduct
Contributors must adhere to our code of conduct, treating all community members with respect and professionalism.

## 4. Intellectual Property
You retain ownership of your contributions but grant us the necessary rights to use them in our platform.

## 5. Termination
This agreement may be terminated by either party with written notice.""",
    },
]
